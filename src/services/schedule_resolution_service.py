"""
Schedule resolution service.

Chooses the effective working window for a specialist on a given date from
three sources, highest precedence first:

1. Active closures (vacations, holidays) covering the date block it entirely.
2. An active schedule exception for exactly that date replaces the weekly entry.
3. The weekly schedule entry for the date's day of week; no entry means the
   specialist does not work that day.
"""

import logging
from datetime import date as date_type
from typing import Iterable, List

from core.exceptions import ScheduleIntegrityError
from shared_types.availability import (
    ActiveDay, BlockedDay, Closure, DaySnapshot, DaySource, DayStatus,
    ScheduleException, WeeklySchedule,
)
from utils.datetime_utils import day_of_week, format_date

logger = logging.getLogger(__name__)

DEFAULT_CLOSURE_REASON = "Fecha cerrada"
INACTIVE_DAY_REASON = "El especialista no atiende este día"


class ScheduleResolutionService:
    """
    Service class for resolving the effective working window of a date.

    Pure lookups over pre-fetched snapshots; no database access.
    """

    @staticmethod
    def find_covering_closures(
        target_date: date_type,
        closures: Iterable[Closure]
    ) -> List[Closure]:
        """Return the active closures whose inclusive range contains target_date."""
        return [c for c in closures if c.is_active and c.covers(target_date)]

    @staticmethod
    def find_exception(
        target_date: date_type,
        exceptions: Iterable[ScheduleException]
    ) -> ScheduleException | None:
        """
        Return the active exception for exactly target_date, if any.

        Raises:
            ScheduleIntegrityError: If more than one active exception exists for the date
        """
        matches = [e for e in exceptions if e.is_active and e.date == target_date]
        if len(matches) > 1:
            raise ScheduleIntegrityError(
                f"Found {len(matches)} active schedule exceptions for {format_date(target_date)}"
            )
        return matches[0] if matches else None

    @staticmethod
    def resolve_window(
        target_date: date_type,
        weekly_schedule: WeeklySchedule,
        exceptions: Iterable[ScheduleException] = (),
        closures: Iterable[Closure] = ()
    ) -> DayStatus:
        """
        Resolve the bookable window for target_date.

        Args:
            target_date: Date to resolve
            weekly_schedule: Day of week (0=Sunday) to WorkingWindow
            exceptions: Schedule exceptions for the specialist (any dates)
            closures: Closures for the specialist (any ranges)

        Returns:
            ActiveDay with the effective window, or BlockedDay
        """
        covering = ScheduleResolutionService.find_covering_closures(target_date, closures)
        if covering:
            closure = covering[0]
            logger.debug(f"{format_date(target_date)} blocked by closure ({closure.closure_type})")
            return BlockedDay(
                source=DaySource.CLOSURE,
                reason=closure.reason or DEFAULT_CLOSURE_REASON,
                closure=closure,
            )

        exception = ScheduleResolutionService.find_exception(target_date, exceptions)
        if exception is not None:
            # Exceptions replace the weekly entry verbatim, they are never merged
            return ActiveDay(window=exception.window, source=DaySource.EXCEPTION)

        window = weekly_schedule.get(day_of_week(target_date))
        if window is None:
            return BlockedDay(source=DaySource.INACTIVE, reason=INACTIVE_DAY_REASON)

        return ActiveDay(window=window, source=DaySource.WEEKLY)

    @staticmethod
    def resolve_snapshot(snapshot: DaySnapshot) -> DayStatus:
        """Resolve the window for a day snapshot fetched by the persistence layer."""
        return ScheduleResolutionService.resolve_window(
            snapshot.date,
            snapshot.weekly_schedule,
            snapshot.exceptions,
            snapshot.closures,
        )
