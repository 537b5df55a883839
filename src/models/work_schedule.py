"""
Work schedule model for the weekly working hours of each specialist.

One active row per (specialist, day of week). A day without an active row is
a day the specialist does not work.
"""

from datetime import time, datetime
from typing import List, Optional
from sqlalchemy import String, Time, Boolean, Integer, JSON, TIMESTAMP, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import DAY_LABELS
from models.base import Base, generate_uuid


class WorkSchedule(Base):
    """
    Weekly working window for one day of the week.

    The lunch break is optional and exists only when both lunch_start and
    lunch_end are set. allowed_services restricts which services may be
    booked on that day; an empty or missing list allows all services.
    """

    __tablename__ = "specialist_schedules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    specialist_id: Mapped[str] = mapped_column(ForeignKey("specialists.id"))
    """Reference to the specialist."""

    day_of_week: Mapped[int] = mapped_column(Integer)
    """Day of the week (0=Sunday, 1=Monday, ..., 6=Saturday)."""

    start_time: Mapped[time] = mapped_column(Time)
    """Start of the working window."""

    end_time: Mapped[time] = mapped_column(Time)
    """End of the working window."""

    lunch_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    lunch_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    allowed_services: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    """Service ids bookable on this day, or null for all services."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    specialist = relationship("Specialist", back_populates="schedules")

    __table_args__ = (
        Index('idx_specialist_schedules_specialist_day', 'specialist_id', 'day_of_week'),
    )

    @property
    def day_name(self) -> str:
        """Get the day name for display."""
        return DAY_LABELS[self.day_of_week]

    def __repr__(self) -> str:
        return f"<WorkSchedule(specialist_id={self.specialist_id}, day={self.day_name}, {self.start_time}-{self.end_time})>"
