"""
Schedule exception model for one-off changes to a specialist's hours.

An active exception replaces the weekly schedule entry for exactly one date.
It is not merged with the weekly entry: a missing lunch in the exception means
no lunch that day.
"""

from datetime import date as date_type, time, datetime
from typing import List, Optional
from sqlalchemy import String, Date, Time, Boolean, JSON, TIMESTAMP, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_REASON_LENGTH
from models.base import Base, generate_uuid


class ScheduleException(Base):
    """Override of the weekly window for a single date."""

    __tablename__ = "schedule_exceptions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    specialist_id: Mapped[str] = mapped_column(ForeignKey("specialists.id"))

    exception_date: Mapped[date_type] = mapped_column(Date)
    """The date this exception applies to."""

    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)
    lunch_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    lunch_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    allowed_services: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    reason: Mapped[Optional[str]] = mapped_column(String(MAX_REASON_LENGTH), nullable=True)
    """Admin note, e.g. "Capacitación"."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    specialist = relationship("Specialist", back_populates="schedule_exceptions")

    __table_args__ = (
        Index('idx_schedule_exceptions_specialist_date', 'specialist_id', 'exception_date'),
    )

    def __repr__(self) -> str:
        return f"<ScheduleException(specialist_id={self.specialist_id}, date={self.exception_date})>"
