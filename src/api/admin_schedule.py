"""
Admin schedule validation API endpoints.

Audits proposed schedule edits before the admin applies them:
- Weekly schedule change for one day of the week
- Schedule exception for a single date
- Closure over a date range

These endpoints never write. They return the affected appointments so the
admin can decide whether to proceed and which patients to contact.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from api.responses import (
    AppointmentSummaryResponse, CamelModel, ClosureValidationResponse,
    PatientNotificationResponse, ScheduleChangeValidationResponse, ScheduleValidationResponse,
)
from core.database import get_db
from services import ScheduleValidationService
from shared_types.availability import Conflict, ScheduleChangeValidation, WorkingWindow
from utils.datetime_utils import parse_date_string
from utils.specialist_helpers import verify_specialist_exists
from utils.schedule_queries import (
    fetch_appointments_for_date, fetch_appointments_in_range,
    fetch_future_appointments_for_weekday,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Request Models

class ScheduleChangeRequest(CamelModel):
    """Request model for validating a weekly schedule change."""
    specialist_id: str
    day_of_week: int = Field(..., ge=0, le=6)  # 0=Sunday
    new_start_time: str  # Format: "HH:MM"
    new_end_time: str
    new_lunch_start: Optional[str] = None
    new_lunch_end: Optional[str] = None
    new_allowed_services: List[str] = []


class ScheduleExceptionRequest(CamelModel):
    """Request model for validating a schedule exception."""
    specialist_id: str
    exception_date: str  # Format: "YYYY-MM-DD"
    new_start_time: str
    new_end_time: str
    new_lunch_start: Optional[str] = None
    new_lunch_end: Optional[str] = None
    new_allowed_services: List[str] = []


class ClosureRequest(CamelModel):
    """Request model for validating a closure."""
    specialist_id: str
    start_date: str  # Format: "YYYY-MM-DD"
    end_date: str


def _notifications(conflicts: List[Conflict]) -> List[PatientNotificationResponse]:
    """One suggested message per affected appointment, in conflict order."""
    by_appointment: dict[str, List[Conflict]] = {}
    for conflict in conflicts:
        by_appointment.setdefault(conflict.appointment_id, []).append(conflict)

    return [
        PatientNotificationResponse(
            appointment_id=appointment_id,
            patient_email=group[0].patient_email or "",
            message=ScheduleValidationService.generate_notification_message(group),
        )
        for appointment_id, group in by_appointment.items()
    ]


def _validation_response(validation: ScheduleChangeValidation) -> ScheduleChangeValidationResponse:
    return ScheduleChangeValidationResponse(
        validation=ScheduleValidationResponse.model_validate(validation.to_dict()),
        notifications=_notifications(validation.conflicts),
    )


@router.post("/schedules/validate", summary="Validate a weekly schedule change",
             response_model=ScheduleChangeValidationResponse)
async def validate_schedule_change(
    request: ScheduleChangeRequest,
    db: Session = Depends(get_db)
) -> ScheduleChangeValidationResponse:
    """Check which future appointments on that weekday the new hours would affect."""
    new_window = WorkingWindow.from_strings(
        request.new_start_time,
        request.new_end_time,
        request.new_lunch_start,
        request.new_lunch_end,
        request.new_allowed_services,
    )
    verify_specialist_exists(db, request.specialist_id)

    appointments = fetch_future_appointments_for_weekday(db, request.specialist_id, request.day_of_week)
    validation = ScheduleValidationService.validate_weekly_schedule_change(
        request.day_of_week, new_window, appointments
    )
    return _validation_response(validation)


@router.post("/schedule-exceptions/validate", summary="Validate a schedule exception",
             response_model=ScheduleChangeValidationResponse)
async def validate_schedule_exception(
    request: ScheduleExceptionRequest,
    db: Session = Depends(get_db)
) -> ScheduleChangeValidationResponse:
    """Check which appointments on the exception date the new hours would affect."""
    exception_date = parse_date_string(request.exception_date)
    new_window = WorkingWindow.from_strings(
        request.new_start_time,
        request.new_end_time,
        request.new_lunch_start,
        request.new_lunch_end,
        request.new_allowed_services,
    )
    verify_specialist_exists(db, request.specialist_id)

    appointments = fetch_appointments_for_date(db, request.specialist_id, exception_date)
    validation = ScheduleValidationService.validate_schedule_exception(
        exception_date, new_window, appointments
    )
    return _validation_response(validation)


@router.post("/closures/validate", summary="Validate a closure", response_model=ClosureValidationResponse)
async def validate_closure(
    request: ClosureRequest,
    db: Session = Depends(get_db)
) -> ClosureValidationResponse:
    """Check that no scheduled appointments fall inside the closure range."""
    start_date = parse_date_string(request.start_date)
    end_date = parse_date_string(request.end_date)
    verify_specialist_exists(db, request.specialist_id)

    appointments = []
    if start_date <= end_date:
        appointments = fetch_appointments_in_range(db, request.specialist_id, start_date, end_date)
    result = ScheduleValidationService.validate_closure(start_date, end_date, appointments)

    return ClosureValidationResponse(
        can_create=result.can_create,
        appointments=[AppointmentSummaryResponse.from_snapshot(a) for a in result.blocking_appointments],
        message=result.message,
    )
