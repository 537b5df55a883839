"""
Exceptions raised by the scheduling engine.

Every error subclasses ValueError so the global ValueError handler in main.py
turns unhandled validation failures into 400 responses.
"""

from typing import Optional


class SchedulingError(ValueError):
    """Base class for local validation failures in the scheduling engine."""
    pass


class InvalidFormatError(SchedulingError):
    """Malformed HH:MM / YYYY-MM-DD string, or minutes outside a single day."""
    pass


class InvalidDurationError(SchedulingError):
    """Service or appointment duration is not a positive number of minutes."""
    pass


class InvalidWindowError(SchedulingError):
    """Interval with end <= start, lunch not nested in the window, or inverted date range."""
    pass


class ScheduleIntegrityError(SchedulingError):
    """Stored schedule data breaks an invariant (e.g. two active exceptions for one date)."""
    pass


class SlotUnavailableError(SchedulingError):
    """
    The proposed appointment cannot be booked.

    Attributes:
        reason: Machine-readable reason ('closed', 'inactive_day', 'service_not_allowed',
            'outside_hours', 'lunch_break', 'overlap', 'past', 'too_soon',
            'too_far', 'slot_taken')
        retryable: True when picking another slot is expected to succeed
    """

    retryable = False

    def __init__(self, message: str, reason: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.details = details or {}


class SlotTakenError(SlotUnavailableError):
    """
    The database uniqueness constraint rejected the write.

    This is the authoritative "slot just taken" signal: another booking for the
    same specialist/date/time was committed after our availability pre-check.
    """

    retryable = True

    def __init__(self, message: str = "El horario seleccionado acaba de ser reservado. Por favor elija otro horario.",
                 details: Optional[dict] = None):
        super().__init__(message, reason="slot_taken", details=details)
