"""
Shared type definitions for the scheduling engine.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.availability import (
    ActiveDay,
    AppointmentSnapshot,
    AppointmentStatus,
    BlockedDay,
    Closure,
    ClosureValidation,
    Conflict,
    ConflictType,
    DaySnapshot,
    DaySource,
    DayStatus,
    Interval,
    ScheduleChangeValidation,
    ScheduleException,
    SlotData,
    WeeklySchedule,
    WorkingWindow,
)

__all__ = [
    "ActiveDay",
    "AppointmentSnapshot",
    "AppointmentStatus",
    "BlockedDay",
    "Closure",
    "ClosureValidation",
    "Conflict",
    "ConflictType",
    "DaySnapshot",
    "DaySource",
    "DayStatus",
    "Interval",
    "ScheduleChangeValidation",
    "ScheduleException",
    "SlotData",
    "WeeklySchedule",
    "WorkingWindow",
]
