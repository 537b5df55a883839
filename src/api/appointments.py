"""
Appointment API endpoints.

Public booking plus the admin status change. Booking runs the availability
pre-check and relies on the unique slot index for concurrent requests; both
rejections surface as 409 through the SlotUnavailableError handler in main.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import EmailStr, field_validator
from sqlalchemy.orm import Session

from api.responses import AppointmentMutationResponse, AppointmentResponse, CamelModel
from core.constants import MAX_REASON_LENGTH, MAX_STRING_LENGTH
from core.database import get_db
from models import Appointment
from services import BookingService
from utils.datetime_utils import format_date, minutes_to_time, time_of_day_to_minutes
from utils.specialist_helpers import verify_specialist_exists

logger = logging.getLogger(__name__)

router = APIRouter()


class AppointmentCreateRequest(CamelModel):
    """Request model for booking an appointment."""
    specialist_id: str
    service_id: Optional[str] = None
    appointment_date: str  # Format: "YYYY-MM-DD"
    appointment_time: str  # Format: "HH:MM"
    patient_name: str
    patient_email: EmailStr
    patient_phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('patient_name')
    @classmethod
    def validate_patient_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('El nombre es obligatorio')
        if len(v) > MAX_STRING_LENGTH:
            raise ValueError('El nombre es demasiado largo')
        return v

    @field_validator('patient_email')
    @classmethod
    def normalize_patient_email(cls, v: str) -> str:
        return v.lower()

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) > MAX_REASON_LENGTH:
            raise ValueError(f'Notas demasiado largas (máximo {MAX_REASON_LENGTH} caracteres)')
        return v


class AppointmentStatusRequest(CamelModel):
    """Request model for changing an appointment status."""
    appointment_id: str
    status: str  # 'scheduled', 'completed', 'cancelled' or 'no_show'


def _appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        specialist_id=appointment.specialist_id,
        service_id=appointment.service_id,
        patient_id=appointment.patient_id,
        appointment_date=format_date(appointment.appointment_date),
        appointment_time=minutes_to_time(time_of_day_to_minutes(appointment.appointment_time)),
        duration=appointment.duration,
        status=appointment.status,
    )


@router.post("", summary="Book an appointment", response_model=AppointmentMutationResponse,
             status_code=status.HTTP_201_CREATED)
async def create_appointment(
    request: AppointmentCreateRequest,
    db: Session = Depends(get_db)
) -> AppointmentMutationResponse:
    """
    Book an appointment.

    Returns 409 when the slot is not bookable (closed day, outside hours,
    lunch break, overlap, past or outside the booking lead time) or was just
    taken by another booking. Returns 404 for an unknown service.
    """
    verify_specialist_exists(db, request.specialist_id)

    try:
        appointment = BookingService.create_appointment(
            db,
            specialist_id=request.specialist_id,
            service_id=request.service_id,
            appointment_date=request.appointment_date,
            appointment_time=request.appointment_time,
            patient_name=request.patient_name,
            patient_email=request.patient_email,
            patient_phone=request.patient_phone,
            notes=request.notes,
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()

    return AppointmentMutationResponse(success=True, appointment=_appointment_response(appointment))


@router.patch("", summary="Change an appointment status", response_model=AppointmentMutationResponse)
async def update_appointment_status(
    request: AppointmentStatusRequest,
    db: Session = Depends(get_db)
) -> AppointmentMutationResponse:
    """Change the status of an appointment (admin)."""
    try:
        appointment = BookingService.update_status(db, request.appointment_id, request.status)
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Turno no encontrado"
        )
    db.commit()

    return AppointmentMutationResponse(success=True, appointment=_appointment_response(appointment))
