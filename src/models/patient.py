"""
Patient model.

Patients are created on first booking and looked up by email afterwards; the
clinic does not require patients to register.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import MAX_STRING_LENGTH
from models.base import Base, generate_uuid


class Patient(Base):
    """Patient entity identified by email."""

    __tablename__ = "patients"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Full name as entered in the booking form."""

    email: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    """Email address, stored lowercased. Used to find returning patients."""

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    appointments = relationship("Appointment", back_populates="patient")

    __table_args__ = (
        Index('idx_patients_email', 'email', unique=True),
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, email='{self.email}')>"
