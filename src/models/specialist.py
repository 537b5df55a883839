"""
Specialist model representing the professionals patients book with.

Each specialist has a weekly schedule, optional one-off schedule exceptions
and closures, and the appointments booked with them.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_STRING_LENGTH
from models.base import Base, generate_uuid


class Specialist(Base):
    """Specialist entity owning schedules and appointments."""

    __tablename__ = "specialists"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    """Unique identifier (UUID string)."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Display name shown to patients."""

    email: Mapped[Optional[str]] = mapped_column(String(MAX_STRING_LENGTH), nullable=True)
    """Contact email."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Inactive specialists are hidden from booking."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    schedules = relationship("WorkSchedule", back_populates="specialist", cascade="all, delete-orphan")
    schedule_exceptions = relationship("ScheduleException", back_populates="specialist", cascade="all, delete-orphan")
    closures = relationship("Closure", back_populates="specialist", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="specialist")

    def __repr__(self) -> str:
        return f"<Specialist(id={self.id}, name='{self.name}')>"
