"""
Services package for the scheduling engine.

This package contains service classes that encapsulate the scheduling logic
shared across API endpoints.
"""

from .availability_service import AvailabilityService
from .schedule_resolution_service import ScheduleResolutionService
from .schedule_validation_service import ScheduleValidationService
from .booking_service import BookingService

__all__ = [
    "AvailabilityService",
    "ScheduleResolutionService",
    "ScheduleValidationService",
    "BookingService",
]
