"""
Shared types for availability-related functionality.

This module contains the plain data classes the scheduling engine works on.
The persistence layer (utils.schedule_queries) builds these snapshots from
database rows; the services take only these snapshots as arguments, so the
engine can be tested without a database.

Times of day are integer minutes since midnight; intervals are half-open
[start, end).
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from core.constants import APPOINTMENT_STATUS_SCHEDULED, CLOSURE_TYPES, LAST_MINUTE_OF_DAY
from core.exceptions import InvalidDurationError, InvalidFormatError, InvalidWindowError
from utils.datetime_utils import format_date, minutes_to_time, time_to_minutes


@dataclass(frozen=True, order=True)
class Interval:
    """Half-open time interval [start, end) in minutes since midnight."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.start > LAST_MINUTE_OF_DAY:
            raise InvalidWindowError(f"Interval start out of range: {self.start}")
        if self.end <= self.start:
            raise InvalidWindowError(
                f"Interval end must be after start ({self.start} >= {self.end})"
            )

    @classmethod
    def from_strings(cls, start: str, end: str) -> "Interval":
        """Build an interval from two HH:MM strings."""
        return cls(time_to_minutes(start), time_to_minutes(end))

    @classmethod
    def for_appointment(cls, start: int, duration: int) -> "Interval":
        """Occupied interval of an appointment: [start, start + duration)."""
        if duration <= 0:
            raise InvalidDurationError(f"Duration must be positive, got {duration}")
        return cls(start, start + duration)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class WorkingWindow:
    """
    Bookable envelope for one calendar day.

    Invariant: start < end, and when a lunch break is present
    start <= lunch.start < lunch.end <= end.

    allowed_services restricts which services can be booked inside the window;
    an empty tuple means every service is allowed.
    """

    start: int
    end: int
    lunch: Optional[Interval] = None
    allowed_services: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.start < 0 or self.end > LAST_MINUTE_OF_DAY:
            raise InvalidWindowError(f"Working window out of range: {self.start}-{self.end}")
        if self.end <= self.start:
            raise InvalidWindowError(
                f"Working window end must be after start ({self.start} >= {self.end})"
            )
        if self.lunch is not None:
            if not (self.start <= self.lunch.start and self.lunch.end <= self.end):
                raise InvalidWindowError(
                    f"Lunch break {minutes_to_time(self.lunch.start)}-{minutes_to_time(self.lunch.end)} "
                    f"is not inside the working window"
                )

    @classmethod
    def from_strings(
        cls,
        start: str,
        end: str,
        lunch_start: Optional[str] = None,
        lunch_end: Optional[str] = None,
        allowed_services: Optional[List[str]] = None,
    ) -> "WorkingWindow":
        """
        Build a window from HH:MM strings.

        A lunch break exists only when both lunch_start and lunch_end are given.
        """
        lunch = None
        if lunch_start and lunch_end:
            lunch = Interval.from_strings(lunch_start, lunch_end)
        return cls(
            start=time_to_minutes(start),
            end=time_to_minutes(end),
            lunch=lunch,
            allowed_services=tuple(allowed_services or ()),
        )

    def allows_service(self, service_id: Optional[str]) -> bool:
        """Check whether a service may be booked in this window."""
        if not self.allowed_services or service_id is None:
            return True
        return service_id in self.allowed_services

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "startTime": minutes_to_time(self.start),
            "endTime": minutes_to_time(self.end),
            "lunchStart": minutes_to_time(self.lunch.start) if self.lunch else None,
            "lunchEnd": minutes_to_time(self.lunch.end) if self.lunch else None,
        }


# Day of week (0=Sunday ... 6=Saturday) -> window
WeeklySchedule = Dict[int, WorkingWindow]


@dataclass(frozen=True)
class ScheduleException:
    """One-off override of the weekly schedule for exactly one date."""

    date: date
    window: WorkingWindow
    reason: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Closure:
    """Inclusive date range during which no bookings are possible."""

    start_date: date
    end_date: date
    reason: Optional[str] = None
    closure_type: str = "vacation"
    is_active: bool = True

    def __post_init__(self) -> None:
        if self.closure_type not in CLOSURE_TYPES:
            raise InvalidFormatError(f"Unknown closure type: {self.closure_type!r}")
        if self.end_date < self.start_date:
            raise InvalidWindowError(
                f"Closure end date {format_date(self.end_date)} is before start date "
                f"{format_date(self.start_date)}"
            )

    def covers(self, target_date: date) -> bool:
        return self.start_date <= target_date <= self.end_date


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


@dataclass(frozen=True)
class AppointmentSnapshot:
    """Read-only view of an appointment row, as supplied by the persistence layer."""

    id: str
    specialist_id: str
    date: date
    time: int
    duration: int
    status: str = APPOINTMENT_STATUS_SCHEDULED
    service_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    service_name: Optional[str] = None

    @property
    def is_scheduled(self) -> bool:
        return self.status == AppointmentStatus.SCHEDULED.value

    @property
    def interval(self) -> Interval:
        return Interval.for_appointment(self.time, self.duration)

    @property
    def time_str(self) -> str:
        return minutes_to_time(self.time)


class ConflictType(str, Enum):
    OUTSIDE_HOURS = "outside_hours"
    LUNCH_CONFLICT = "lunch_conflict"
    SERVICE_NOT_ALLOWED = "service_not_allowed"


@dataclass(frozen=True)
class Conflict:
    """An existing appointment invalidated by a proposed schedule change."""

    appointment_id: str
    conflict_type: ConflictType
    appointment_date: date
    appointment_time: int
    duration: int
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    service_name: Optional[str] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {
            "appointmentId": self.appointment_id,
            "appointmentDate": format_date(self.appointment_date),
            "appointmentTime": minutes_to_time(self.appointment_time),
            "duration": self.duration,
            "patientName": self.patient_name or "Desconocido",
            "patientEmail": self.patient_email or "",
            "serviceName": self.service_name or "Desconocido",
            "conflictType": self.conflict_type.value,
            "reason": self.reason,
        }


@dataclass
class ScheduleChangeValidation:
    """
    Result of auditing a proposed weekly-schedule or exception change.

    can_proceed is advisory: the admin workflow decides whether to apply the
    change, notify the affected patients, or abort.
    """

    has_conflicts: bool
    conflicts: List[Conflict]
    affected_appointments_count: int
    can_proceed: bool
    recommendation: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "hasConflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "affectedAppointmentsCount": self.affected_appointments_count,
            "canProceed": self.can_proceed,
            "recommendation": self.recommendation,
        }


@dataclass
class ClosureValidation:
    """Result of checking whether a closure can be created over a date range."""

    can_create: bool
    blocking_appointments: List[AppointmentSnapshot]
    message: str


class DaySource(str, Enum):
    WEEKLY = "weekly"
    EXCEPTION = "exception"
    CLOSURE = "closure"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class ActiveDay:
    """The specialist is bookable inside window on this date."""

    window: WorkingWindow
    source: DaySource

    is_blocked = False


@dataclass(frozen=True)
class BlockedDay:
    """No bookable window exists on this date (closure, or inactive weekday)."""

    source: DaySource
    reason: str
    closure: Optional[Closure] = None

    is_blocked = True


DayStatus = Union[ActiveDay, BlockedDay]


@dataclass
class DaySnapshot:
    """Everything the engine needs for one (specialist, date)."""

    specialist_id: str
    date: date
    weekly_schedule: WeeklySchedule = field(default_factory=dict)
    exceptions: List[ScheduleException] = field(default_factory=list)
    closures: List[Closure] = field(default_factory=list)
    appointments: List[AppointmentSnapshot] = field(default_factory=list)


@dataclass
class SlotData:
    """
    Represents an available time slot.

    Used by the booking API to render available times.
    """
    start_time: str  # Format: "HH:MM"
    end_time: str  # Format: "HH:MM"

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary format."""
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
