"""
Service model representing the treatments offered by the clinic.

The service duration drives slot generation: available start times are laid
out in duration-sized steps.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Integer, Numeric, Boolean, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.constants import MAX_STRING_LENGTH
from models.base import Base, generate_uuid


class Service(Base):
    """Bookable treatment with a fixed duration."""

    __tablename__ = "services"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    """Unique identifier (UUID string)."""

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Service name shown to patients and in conflict reports."""

    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """
    Duration in minutes.

    Legacy rows may have no duration; the query layer falls back to
    DEFAULT_APPOINTMENT_DURATION_MINUTES.
    """

    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    """Price in pesos, informational only."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', duration={self.duration})>"
