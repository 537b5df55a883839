"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
multiple API endpoints. Field names are snake_case in Python and camelCase on
the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared_types.availability import AppointmentSnapshot
from utils.datetime_utils import format_date


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys; accepts either form on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AvailableTimesResponse(CamelModel):
    """Response model for available start times of one date."""
    available_times: List[str]  # Format: "HH:MM"


class DateAvailabilityResponse(CamelModel):
    """Available start times for one date of a batch request."""
    date: str  # Format: "YYYY-MM-DD"
    available_times: List[str]


class BatchAvailableTimesResponse(CamelModel):
    """Response model for batch availability."""
    results: List[DateAvailabilityResponse]


class DayStatusResponse(CamelModel):
    """Resolved working window of a specialist on a date."""
    date: str
    status: str  # 'active' or 'blocked'
    source: str  # 'weekly', 'exception', 'closure' or 'inactive'
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    lunch_start: Optional[str] = None
    lunch_end: Optional[str] = None
    allowed_services: List[str] = []
    reason: Optional[str] = None


class ConflictResponse(CamelModel):
    """An existing appointment affected by a schedule change."""
    appointment_id: str
    appointment_date: str
    appointment_time: str
    duration: int
    patient_name: str
    patient_email: str
    service_name: str
    conflict_type: str  # 'outside_hours', 'lunch_conflict' or 'service_not_allowed'
    reason: str


class ScheduleValidationResponse(CamelModel):
    """Result of auditing a proposed schedule change."""
    has_conflicts: bool
    conflicts: List[ConflictResponse]
    affected_appointments_count: int
    can_proceed: bool
    recommendation: str


class PatientNotificationResponse(CamelModel):
    """Suggested message for a patient whose appointment is affected."""
    appointment_id: str
    patient_email: str
    message: str


class ScheduleChangeValidationResponse(CamelModel):
    """Response model for the schedule and exception validation endpoints."""
    validation: ScheduleValidationResponse
    notifications: List[PatientNotificationResponse] = []


class AppointmentSummaryResponse(CamelModel):
    """Compact appointment view used in admin validation responses."""
    id: str
    appointment_date: str
    appointment_time: str
    duration: int
    status: str
    service_id: Optional[str] = None
    service_name: Optional[str] = None
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: AppointmentSnapshot) -> "AppointmentSummaryResponse":
        return cls(
            id=snapshot.id,
            appointment_date=format_date(snapshot.date),
            appointment_time=snapshot.time_str,
            duration=snapshot.duration,
            status=snapshot.status,
            service_id=snapshot.service_id,
            service_name=snapshot.service_name,
            patient_name=snapshot.patient_name,
            patient_email=snapshot.patient_email,
        )


class ClosureValidationResponse(CamelModel):
    """Response model for closure validation."""
    can_create: bool
    appointments: List[AppointmentSummaryResponse]
    message: str


class AppointmentResponse(CamelModel):
    """Response model for a booked appointment."""
    id: str
    specialist_id: str
    service_id: Optional[str] = None
    patient_id: str
    appointment_date: str
    appointment_time: str
    duration: Optional[int] = None
    status: str


class AppointmentMutationResponse(CamelModel):
    """Response model for appointment create and update."""
    success: bool
    appointment: AppointmentResponse
