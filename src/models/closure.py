"""
Closure model for vacations, holidays and other closed periods.

A closure blocks every date in its inclusive range, regardless of the weekly
schedule or any schedule exception.
"""

from datetime import date as date_type, datetime
from typing import Optional
from sqlalchemy import String, Date, Boolean, TIMESTAMP, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_REASON_LENGTH
from models.base import Base, generate_uuid


class Closure(Base):
    """Closed date range for a specialist."""

    __tablename__ = "closures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    specialist_id: Mapped[str] = mapped_column(ForeignKey("specialists.id"))

    start_date: Mapped[date_type] = mapped_column(Date)
    """First closed date (inclusive)."""

    end_date: Mapped[date_type] = mapped_column(Date)
    """Last closed date (inclusive)."""

    reason: Mapped[Optional[str]] = mapped_column(String(MAX_REASON_LENGTH), nullable=True)

    closure_type: Mapped[str] = mapped_column(String(20), default="vacation", nullable=False)
    """One of 'vacation', 'holiday', 'personal', 'maintenance'."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    specialist = relationship("Specialist", back_populates="closures")

    __table_args__ = (
        Index('idx_closures_specialist_range', 'specialist_id', 'start_date', 'end_date'),
        CheckConstraint('end_date >= start_date', name='ck_closures_date_range'),
    )

    def __repr__(self) -> str:
        return f"<Closure(specialist_id={self.specialist_id}, {self.start_date}..{self.end_date}, type={self.closure_type})>"
