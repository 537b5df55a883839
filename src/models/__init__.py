# Package initialization
# Import all models to ensure relationships are properly established
from .specialist import Specialist
from .service import Service
from .patient import Patient
from .work_schedule import WorkSchedule
from .schedule_exception import ScheduleException
from .closure import Closure
from .appointment import Appointment

__all__ = [
    "Specialist",
    "Service",
    "Patient",
    "WorkSchedule",
    "ScheduleException",
    "Closure",
    "Appointment",
]
