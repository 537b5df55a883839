"""
Appointment model representing booked sessions between patients and specialists.

Double booking is prevented by a partial unique index on
(specialist_id, appointment_date, appointment_time) over non-cancelled rows.
The availability pre-check only improves the user experience; this index is
the guard that holds under concurrent bookings.
"""

from datetime import date as date_type, time, datetime
from typing import Optional
from sqlalchemy import String, Date, Time, Integer, TIMESTAMP, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import APPOINTMENT_STATUS_SCHEDULED, MAX_REASON_LENGTH
from models.base import Base, generate_uuid

_ACTIVE_SLOT_CONDITION = text("status != 'cancelled'")


class Appointment(Base):
    """
    Appointment entity for one specialist, service and patient at a date and time.

    Only appointments with status 'scheduled' occupy time in slot generation
    and schedule audits.
    """

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    specialist_id: Mapped[str] = mapped_column(ForeignKey("specialists.id"))
    """Reference to the specialist."""

    service_id: Mapped[Optional[str]] = mapped_column(ForeignKey("services.id"), nullable=True)
    """Reference to the booked service."""

    patient_id: Mapped[str] = mapped_column(ForeignKey("patients.id"))
    """Reference to the patient."""

    appointment_date: Mapped[date_type] = mapped_column(Date)
    appointment_time: Mapped[time] = mapped_column(Time)

    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Duration in minutes at booking time. Null on legacy rows (defaults to 45)."""

    status: Mapped[str] = mapped_column(String(20), default=APPOINTMENT_STATUS_SCHEDULED, nullable=False)
    """Valid values: 'scheduled', 'completed', 'cancelled', 'no_show'."""

    notes: Mapped[Optional[str]] = mapped_column(String(MAX_REASON_LENGTH), nullable=True)
    """Optional patient-provided notes."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    specialist = relationship("Specialist", back_populates="appointments")
    service = relationship("Service")
    patient = relationship("Patient", back_populates="appointments")

    __table_args__ = (
        Index(
            'uq_appointments_active_slot',
            'specialist_id', 'appointment_date', 'appointment_time',
            unique=True,
            postgresql_where=_ACTIVE_SLOT_CONDITION,
            sqlite_where=_ACTIVE_SLOT_CONDITION,
        ),
        Index('idx_appointments_specialist_date', 'specialist_id', 'appointment_date'),
    )

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, specialist_id={self.specialist_id}, {self.appointment_date} {self.appointment_time}, status='{self.status}')>"
