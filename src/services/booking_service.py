"""
Booking service for creating appointments and changing their status.

The only write path of the scheduling engine. The availability pre-check runs
first for a friendly rejection reason; the partial unique index on
appointments is what actually rejects a concurrent double booking.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import APPOINTMENT_STATUS_SCHEDULED, APPOINTMENT_STATUSES
from core.exceptions import InvalidFormatError, SlotTakenError
from models import Appointment, Patient
from services.availability_service import AvailabilityService
from utils.datetime_utils import clinic_now, minutes_to_time_of_day, parse_date_string, time_to_minutes
from utils.schedule_queries import fetch_day_snapshot, get_service_duration

logger = logging.getLogger(__name__)

ACTIVE_SLOT_INDEX = "uq_appointments_active_slot"
# SQLite reports the indexed columns instead of the index name
SQLITE_ACTIVE_SLOT_COLUMNS = "appointments.specialist_id, appointments.appointment_date, appointments.appointment_time"


def is_active_slot_violation(error: IntegrityError) -> bool:
    """Whether an IntegrityError comes from the one-live-appointment-per-slot index."""
    orig = getattr(error, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name is not None:
        return constraint_name == ACTIVE_SLOT_INDEX
    message = str(orig)
    return ACTIVE_SLOT_INDEX in message or SQLITE_ACTIVE_SLOT_COLUMNS in message


class BookingService:
    """
    Service class for appointment writes.

    Callers own the transaction: methods flush but never commit.
    """

    @staticmethod
    def find_or_create_patient(
        db: Session,
        name: str,
        email: str,
        phone: Optional[str] = None
    ) -> Patient:
        """
        Find a patient by email, creating one on first booking.

        Name and phone of a returning patient are refreshed from the form.
        """
        normalized_email = email.strip().lower()
        patient = db.query(Patient).filter(Patient.email == normalized_email).first()
        if patient is None:
            patient = Patient(name=name.strip(), email=normalized_email, phone=phone)
            db.add(patient)
            db.flush()
            logger.info(f"Created patient {patient.id}")
        else:
            patient.name = name.strip()
            if phone:
                patient.phone = phone
        return patient

    @staticmethod
    def create_appointment(
        db: Session,
        specialist_id: str,
        service_id: Optional[str],
        appointment_date: str,
        appointment_time: str,
        patient_name: str,
        patient_email: str,
        patient_phone: Optional[str] = None,
        duration: Optional[int] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Appointment:
        """
        Book an appointment after checking the slot is available.

        Args:
            db: Database session
            specialist_id: Specialist ID
            service_id: Service ID (determines the duration when none is given)
            appointment_date: Date in YYYY-MM-DD format
            appointment_time: Start time in HH:MM format
            patient_name: Patient full name
            patient_email: Patient email (identifies returning patients)
            patient_phone: Optional phone number
            duration: Duration in minutes, overriding the service duration
            notes: Optional patient notes
            now: Current clinic time, defaults to the clinic clock

        Returns:
            The flushed Appointment

        Raises:
            InvalidFormatError: If the date or time is malformed
            LookupError: If service_id does not match any service
            InvalidDurationError: If duration <= 0
            SlotUnavailableError: If the slot is past, too close, too far ahead or not available
            SlotTakenError: If another booking took the slot concurrently
        """
        target_date = parse_date_string(appointment_date)
        start = time_to_minutes(appointment_time)
        service_duration = get_service_duration(db, service_id)
        if duration is None:
            duration = service_duration

        snapshot = fetch_day_snapshot(db, specialist_id, target_date)
        AvailabilityService.check_booking(snapshot, start, duration, service_id, now=now or clinic_now())

        patient = BookingService.find_or_create_patient(db, patient_name, patient_email, patient_phone)
        appointment = Appointment(
            specialist_id=specialist_id,
            service_id=service_id,
            patient_id=patient.id,
            appointment_date=target_date,
            appointment_time=minutes_to_time_of_day(start),
            duration=duration,
            status=APPOINTMENT_STATUS_SCHEDULED,
            notes=notes,
        )
        db.add(appointment)
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            if not is_active_slot_violation(e):
                logger.error(f"Appointment insert failed for specialist {specialist_id}: {e.orig}")
                raise
            logger.warning(
                f"Slot {appointment_date} {appointment_time} for specialist {specialist_id} "
                f"was taken concurrently: {e.orig}"
            )
            raise SlotTakenError(details={"date": appointment_date, "time": appointment_time})

        logger.info(
            f"Booked appointment {appointment.id} for specialist {specialist_id} "
            f"on {appointment_date} {appointment_time} ({duration}min)"
        )
        return appointment

    @staticmethod
    def update_status(db: Session, appointment_id: str, status: str) -> Appointment:
        """
        Change the status of an appointment.

        Cancelling frees the slot: cancelled rows are excluded from the unique
        index and from availability.

        Raises:
            InvalidFormatError: If status is not a known appointment status
            LookupError: If the appointment does not exist
            SlotTakenError: If a cancelled appointment is reactivated into a rebooked slot
        """
        if status not in APPOINTMENT_STATUSES:
            raise InvalidFormatError(
                f"Estado inválido: {status}. Debe ser uno de: {', '.join(APPOINTMENT_STATUSES)}"
            )

        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if appointment is None:
            raise LookupError(f"Appointment {appointment_id} not found")

        old_status = appointment.status
        appointment.status = status
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            if not is_active_slot_violation(e):
                raise
            # Reactivating a cancelled appointment whose slot was rebooked
            raise SlotTakenError(details={"appointmentId": appointment_id})
        logger.info(f"Appointment {appointment_id} status changed: {old_status} -> {status}")
        return appointment
