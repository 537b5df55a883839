"""
Utility functions for loading scheduling snapshots from the database.

The scheduling services never touch the session. These helpers read the rows
they need and convert them into shared_types snapshots, so every request
works on a consistent, materialized view of one specialist's data.
"""

import logging
from datetime import date as date_type
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload

from core.config import DEFAULT_APPOINTMENT_DURATION_MINUTES
from core.constants import APPOINTMENT_STATUS_SCHEDULED
from core.exceptions import ScheduleIntegrityError
from models import Appointment, Closure, ScheduleException, Service, WorkSchedule
from shared_types.availability import (
    AppointmentSnapshot,
    Closure as ClosureSnapshot,
    DaySnapshot,
    Interval,
    ScheduleException as ExceptionSnapshot,
    WeeklySchedule,
    WorkingWindow,
)
from utils.datetime_utils import clinic_today, day_of_week, time_of_day_to_minutes

logger = logging.getLogger(__name__)


def _window_from_row(row: WorkSchedule | ScheduleException) -> WorkingWindow:
    lunch = None
    if row.lunch_start is not None and row.lunch_end is not None:
        lunch = Interval(time_of_day_to_minutes(row.lunch_start), time_of_day_to_minutes(row.lunch_end))
    return WorkingWindow(
        start=time_of_day_to_minutes(row.start_time),
        end=time_of_day_to_minutes(row.end_time),
        lunch=lunch,
        allowed_services=tuple(row.allowed_services or ()),
    )


def appointment_to_snapshot(appointment: Appointment) -> AppointmentSnapshot:
    """
    Convert an appointment row to a snapshot.

    Rows without a stored duration fall back to the service duration, then to
    DEFAULT_APPOINTMENT_DURATION_MINUTES.
    """
    duration = appointment.duration
    if not duration and appointment.service is not None:
        duration = appointment.service.duration
    if not duration:
        duration = DEFAULT_APPOINTMENT_DURATION_MINUTES

    patient = appointment.patient
    service = appointment.service
    return AppointmentSnapshot(
        id=appointment.id,
        specialist_id=appointment.specialist_id,
        date=appointment.appointment_date,
        time=time_of_day_to_minutes(appointment.appointment_time),
        duration=duration,
        status=appointment.status,
        service_id=appointment.service_id,
        patient_name=patient.name if patient else None,
        patient_email=patient.email if patient else None,
        service_name=service.name if service else None,
    )


def _appointments_query(db: Session, specialist_id: str):
    return db.query(Appointment).options(
        joinedload(Appointment.patient),
        joinedload(Appointment.service),
    ).filter(
        Appointment.specialist_id == specialist_id,
        Appointment.status == APPOINTMENT_STATUS_SCHEDULED,
    )


def _to_snapshots(rows: Iterable[Appointment]) -> List[AppointmentSnapshot]:
    return [appointment_to_snapshot(row) for row in rows]


def fetch_weekly_schedule(db: Session, specialist_id: str) -> WeeklySchedule:
    """
    Load the active weekly schedule of a specialist.

    Args:
        db: Database session
        specialist_id: Specialist ID

    Returns:
        Day of week (0=Sunday) to WorkingWindow; days without a row are absent

    Raises:
        ScheduleIntegrityError: If a day has more than one active row
    """
    rows = db.query(WorkSchedule).filter(
        WorkSchedule.specialist_id == specialist_id,
        WorkSchedule.is_active.is_(True)
    ).all()

    schedule: WeeklySchedule = {}
    for row in rows:
        if row.day_of_week in schedule:
            raise ScheduleIntegrityError(
                f"Specialist {specialist_id} has more than one active schedule for day {row.day_of_week}"
            )
        schedule[row.day_of_week] = _window_from_row(row)
    return schedule


def fetch_exceptions_for_date(db: Session, specialist_id: str, target_date: date_type) -> List[ExceptionSnapshot]:
    """Load the active schedule exceptions of a specialist for one date."""
    rows = db.query(ScheduleException).filter(
        ScheduleException.specialist_id == specialist_id,
        ScheduleException.exception_date == target_date,
        ScheduleException.is_active.is_(True)
    ).all()
    return [
        ExceptionSnapshot(
            date=row.exception_date,
            window=_window_from_row(row),
            reason=row.reason,
            is_active=row.is_active,
        )
        for row in rows
    ]


def fetch_closures_covering(db: Session, specialist_id: str, target_date: date_type) -> List[ClosureSnapshot]:
    """Load the active closures of a specialist whose range contains target_date."""
    rows = db.query(Closure).filter(
        Closure.specialist_id == specialist_id,
        Closure.is_active.is_(True),
        Closure.start_date <= target_date,
        Closure.end_date >= target_date
    ).all()
    return [
        ClosureSnapshot(
            start_date=row.start_date,
            end_date=row.end_date,
            reason=row.reason,
            closure_type=row.closure_type,
            is_active=row.is_active,
        )
        for row in rows
    ]


def fetch_appointments_for_date(db: Session, specialist_id: str, target_date: date_type) -> List[AppointmentSnapshot]:
    """Load the scheduled appointments of a specialist on one date, ordered by time."""
    rows = _appointments_query(db, specialist_id).filter(
        Appointment.appointment_date == target_date
    ).order_by(Appointment.appointment_time).all()
    return _to_snapshots(rows)


def fetch_appointments_in_range(
    db: Session,
    specialist_id: str,
    start_date: date_type,
    end_date: date_type
) -> List[AppointmentSnapshot]:
    """Load the scheduled appointments of a specialist in an inclusive date range."""
    rows = _appointments_query(db, specialist_id).filter(
        Appointment.appointment_date >= start_date,
        Appointment.appointment_date <= end_date
    ).order_by(Appointment.appointment_date, Appointment.appointment_time).all()
    return _to_snapshots(rows)


def fetch_future_appointments_for_weekday(
    db: Session,
    specialist_id: str,
    weekday: int,
    today: Optional[date_type] = None
) -> List[AppointmentSnapshot]:
    """
    Load scheduled appointments from today forward that fall on a day of the week.

    The weekday filter runs in Python; SQL weekday functions differ between
    PostgreSQL and SQLite.

    Args:
        db: Database session
        specialist_id: Specialist ID
        weekday: Day of week (0=Sunday ... 6=Saturday)
        today: Reference date (clinic today when omitted)

    Returns:
        Appointment snapshots ordered by date and time
    """
    reference_date = today or clinic_today()
    rows = _appointments_query(db, specialist_id).filter(
        Appointment.appointment_date >= reference_date
    ).order_by(Appointment.appointment_date, Appointment.appointment_time).all()
    return [
        snapshot for snapshot in _to_snapshots(rows)
        if day_of_week(snapshot.date) == weekday
    ]


def fetch_day_snapshot(db: Session, specialist_id: str, target_date: date_type) -> DaySnapshot:
    """
    Load everything the scheduling engine needs for one (specialist, date).

    Args:
        db: Database session
        specialist_id: Specialist ID
        target_date: Date to load

    Returns:
        DaySnapshot with weekly schedule, exceptions, closures and appointments
    """
    snapshot = DaySnapshot(
        specialist_id=specialist_id,
        date=target_date,
        weekly_schedule=fetch_weekly_schedule(db, specialist_id),
        exceptions=fetch_exceptions_for_date(db, specialist_id, target_date),
        closures=fetch_closures_covering(db, specialist_id, target_date),
        appointments=fetch_appointments_for_date(db, specialist_id, target_date),
    )
    logger.debug(
        f"Loaded snapshot for specialist {specialist_id} on {target_date}: "
        f"{len(snapshot.exceptions)} exception(s), {len(snapshot.closures)} closure(s), "
        f"{len(snapshot.appointments)} appointment(s)"
    )
    return snapshot


def get_service_duration(db: Session, service_id: Optional[str]) -> int:
    """
    Get the duration of a service in minutes.

    No service, or a service without a duration, uses
    DEFAULT_APPOINTMENT_DURATION_MINUTES.

    Raises:
        LookupError: If service_id does not match any service
    """
    if not service_id:
        return DEFAULT_APPOINTMENT_DURATION_MINUTES

    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None:
        logger.info(f"Service {service_id} not found")
        raise LookupError("Servicio no encontrado")
    return service.duration or DEFAULT_APPOINTMENT_DURATION_MINUTES
