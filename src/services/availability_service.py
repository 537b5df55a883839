"""
Availability service for slot generation and booking pre-checks.

This module contains the availability logic shared between the public booking
API and the admin calendar: generating the bookable start times for a day and
checking a proposed appointment against the resolved working window.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator, List, Optional, Sequence

from core.config import MAX_ADVANCE_DAYS, MAX_BATCH_DATES, MIN_ADVANCE_HOURS
from core.exceptions import InvalidDurationError, InvalidFormatError, SlotUnavailableError
from services.schedule_resolution_service import ScheduleResolutionService
from shared_types.availability import (
    AppointmentSnapshot, DaySnapshot, DaySource, Interval, SlotData, WorkingWindow,
)
from utils.datetime_utils import (
    ensure_clinic_tz, format_date, minutes_to_time, minutes_to_time_of_day, parse_date_string,
)
from utils.interval_utils import find_overlapping, is_slot_available

logger = logging.getLogger(__name__)


class AvailableStarts:
    """
    Lazy, finite, restartable sequence of available start times (minutes).

    Every iteration recomputes from the stored inputs, so iterating twice
    yields the same ascending sequence.
    """

    def __init__(
        self,
        window_start: int,
        window_end: int,
        lunch: Optional[Interval],
        duration: int,
        occupied: Sequence[Interval]
    ):
        self.window_start = window_start
        self.window_end = window_end
        self.lunch = lunch
        self.duration = duration
        self.occupied = tuple(occupied)

    def _segments(self) -> List[tuple[int, int]]:
        if self.window_end <= self.window_start:
            return []
        if self.lunch is None:
            return [(self.window_start, self.window_end)]
        # Split the day at the lunch break; each half is walked independently
        return [
            (self.window_start, min(self.lunch.start, self.window_end)),
            (max(self.lunch.end, self.window_start), self.window_end),
        ]

    def __iter__(self) -> Iterator[int]:
        for segment_start, segment_end in self._segments():
            candidate = segment_start
            while candidate + self.duration <= segment_end:
                if is_slot_available(Interval(candidate, candidate + self.duration), self.occupied):
                    yield candidate
                candidate += self.duration

    def as_times(self) -> List[str]:
        """Materialize the sequence as HH:MM strings."""
        return [minutes_to_time(start) for start in self]


class AvailabilityService:
    """
    Service class for availability operations.

    All methods are pure functions of their arguments: schedules, closures and
    appointments are passed in as snapshots already fetched by the caller.
    """

    @staticmethod
    def _validate_duration(duration: int) -> None:
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidDurationError(f"Duration must be a positive number of minutes, got {duration!r}")

    @staticmethod
    def generate_available_starts(
        window_start: int,
        window_end: int,
        lunch: Optional[Interval],
        duration: int,
        occupied: Sequence[Interval] = ()
    ) -> AvailableStarts:
        """
        Generate the bookable start times inside a working window.

        Walks each segment of the day (before and after lunch, or the whole
        window when there is no lunch) from its start in duration-sized steps.
        A candidate is emitted when [start, start + duration) fits inside the
        segment and overlaps none of the occupied intervals. Candidates are
        never shifted to fit around lunch.

        Args:
            window_start: Start of the working window (minutes)
            window_end: End of the working window (minutes); end <= start yields nothing
            lunch: Lunch break, or None
            duration: Service duration in minutes
            occupied: Occupied intervals (existing scheduled appointments)

        Returns:
            AvailableStarts, an ascending restartable iterable of start minutes

        Raises:
            InvalidDurationError: If duration <= 0
        """
        AvailabilityService._validate_duration(duration)
        return AvailableStarts(window_start, window_end, lunch, duration, occupied)

    @staticmethod
    def available_starts_for_window(
        window: WorkingWindow,
        duration: int,
        occupied: Sequence[Interval] = ()
    ) -> AvailableStarts:
        """Generate available starts for a WorkingWindow."""
        return AvailabilityService.generate_available_starts(
            window.start, window.end, window.lunch, duration, occupied
        )

    @staticmethod
    def occupied_intervals(appointments: Iterable[AppointmentSnapshot]) -> List[Interval]:
        """
        Build occupied intervals from appointments.

        Only scheduled appointments occupy time; completed, cancelled and
        no-show appointments are ignored.
        """
        return [a.interval for a in appointments if a.is_scheduled]

    @staticmethod
    def get_available_times(
        snapshot: DaySnapshot,
        duration: int,
        service_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[str]:
        """
        Get the available start times for a specialist on a date.

        Args:
            snapshot: Schedule, exceptions, closures and appointments for the date
            duration: Service duration in minutes
            service_id: Service being booked, checked against the window's allowed services
            now: Current clinic time; when given, starts that are past, inside the
                minimum lead time or beyond the booking horizon are dropped

        Returns:
            Ascending list of HH:MM start times; empty when the date is blocked
            or the service is not offered that day
        """
        starts = AvailabilityService._bookable_starts(snapshot, duration, service_id, now)
        return [minutes_to_time(start) for start in starts]

    @staticmethod
    def get_available_slots(
        snapshot: DaySnapshot,
        duration: int,
        service_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[SlotData]:
        """Same as get_available_times, with start and end times per slot."""
        return [
            SlotData(start_time=minutes_to_time(start), end_time=minutes_to_time(start + duration))
            for start in AvailabilityService._bookable_starts(snapshot, duration, service_id, now)
        ]

    @staticmethod
    def _bookable_starts(
        snapshot: DaySnapshot,
        duration: int,
        service_id: Optional[str],
        now: Optional[datetime]
    ) -> List[int]:
        starts = AvailabilityService._available_starts_for_snapshot(snapshot, duration, service_id)
        if starts is None:
            return []
        if now is None:
            return list(starts)
        return [
            start for start in starts
            if AvailabilityService._booking_time_rejection(snapshot.date, start, now) is None
        ]

    @staticmethod
    def _available_starts_for_snapshot(
        snapshot: DaySnapshot,
        duration: int,
        service_id: Optional[str]
    ) -> Optional[AvailableStarts]:
        AvailabilityService._validate_duration(duration)

        day = ScheduleResolutionService.resolve_snapshot(snapshot)
        if day.is_blocked:
            logger.debug(
                f"No availability for specialist {snapshot.specialist_id} on "
                f"{format_date(snapshot.date)}: {day.reason}"
            )
            return None

        window = day.window
        if not window.allows_service(service_id):
            logger.info(
                f"Service {service_id} not offered by specialist {snapshot.specialist_id} "
                f"on {format_date(snapshot.date)}"
            )
            return None

        occupied = AvailabilityService.occupied_intervals(snapshot.appointments)
        return AvailabilityService.available_starts_for_window(window, duration, occupied)

    @staticmethod
    def _booking_time_rejection(
        target_date: date,
        start: int,
        now: datetime,
        min_advance_hours: int = MIN_ADVANCE_HOURS,
        max_advance_days: int = MAX_ADVANCE_DAYS
    ) -> Optional[tuple[str, str]]:
        """Return (reason, message) when the start cannot be booked at `now`, else None."""
        now = ensure_clinic_tz(now)
        appointment_at = datetime.combine(target_date, minutes_to_time_of_day(start), tzinfo=now.tzinfo)
        lead = appointment_at - now

        if lead <= timedelta(0):
            return "past", "No se pueden reservar horarios en el pasado"
        if lead < timedelta(hours=min_advance_hours):
            return "too_soon", f"Debe reservar con al menos {min_advance_hours} horas de anticipación"
        if lead > timedelta(days=max_advance_days):
            return "too_far", f"No se pueden reservar turnos con más de {max_advance_days} días de anticipación"
        return None

    @staticmethod
    def check_booking_time(target_date: date, start: int, now: datetime) -> None:
        """
        Check a proposed start against the clinic clock.

        Args:
            target_date: Appointment date
            start: Proposed start time (minutes)
            now: Current clinic time

        Raises:
            SlotUnavailableError: With reason 'past', 'too_soon' or 'too_far'
        """
        rejection = AvailabilityService._booking_time_rejection(target_date, start, now)
        if rejection is None:
            return

        reason, message = rejection
        logger.info(f"Rejected {format_date(target_date)} {minutes_to_time(start)} at {now.isoformat()}: {reason}")
        raise SlotUnavailableError(
            message,
            reason=reason,
            details={"date": format_date(target_date), "time": minutes_to_time(start)},
        )

    @staticmethod
    def check_booking(
        snapshot: DaySnapshot,
        start: int,
        duration: int,
        service_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Interval:
        """
        Check a proposed appointment against the day's window and bookings.

        This is a pre-check for a better user experience only. The unique index
        on (specialist_id, appointment_date, appointment_time) is what actually
        prevents double booking; see BookingService.

        Args:
            snapshot: Day snapshot for the specialist and date
            start: Proposed start time (minutes)
            duration: Service duration in minutes
            service_id: Service being booked
            exclude_appointment_id: Appointment to ignore (when editing an existing one)
            now: Current clinic time; when given, the lead-time rules are checked first

        Returns:
            The proposed interval

        Raises:
            InvalidDurationError: If duration <= 0
            SlotUnavailableError: If the slot cannot be booked
        """
        AvailabilityService._validate_duration(duration)
        proposed = Interval.for_appointment(start, duration)
        if now is not None:
            AvailabilityService.check_booking_time(snapshot.date, start, now)
        date_str = format_date(snapshot.date)

        day = ScheduleResolutionService.resolve_snapshot(snapshot)
        if day.is_blocked:
            if day.source == DaySource.CLOSURE:
                raise SlotUnavailableError(
                    f"No hay atención disponible: {day.reason}",
                    reason="closed",
                    details={"date": date_str},
                )
            raise SlotUnavailableError(
                "El especialista no atiende en la fecha seleccionada",
                reason="inactive_day",
                details={"date": date_str},
            )

        window = day.window
        if not window.allows_service(service_id):
            raise SlotUnavailableError(
                "El servicio seleccionado no está disponible en este día",
                reason="service_not_allowed",
                details={"date": date_str, "serviceId": service_id},
            )

        if proposed.start < window.start or proposed.end > window.end:
            raise SlotUnavailableError(
                f"El horario debe estar entre {minutes_to_time(window.start)} y {minutes_to_time(window.end)}",
                reason="outside_hours",
                details={"date": date_str, "time": minutes_to_time(start)},
            )

        if window.lunch is not None and not is_slot_available(proposed, [window.lunch]):
            raise SlotUnavailableError(
                "El horario seleccionado coincide con el horario de almuerzo",
                reason="lunch_break",
                details={"date": date_str, "time": minutes_to_time(start)},
            )

        others = [
            a for a in snapshot.appointments
            if a.id != exclude_appointment_id
        ]
        clashes = find_overlapping(proposed, AvailabilityService.occupied_intervals(others))
        if clashes:
            logger.info(
                f"Proposed {date_str} {minutes_to_time(start)} ({duration}min) overlaps "
                f"{len(clashes)} appointment(s) for specialist {snapshot.specialist_id}"
            )
            raise SlotUnavailableError(
                "El horario seleccionado ya no está disponible",
                reason="overlap",
                details={"date": date_str, "time": minutes_to_time(start)},
            )

        return proposed

    @staticmethod
    def validate_batch_dates(dates: List[str], max_dates: int = MAX_BATCH_DATES) -> List[str]:
        """
        Validate and limit batch date requests.

        Args:
            dates: List of date strings in YYYY-MM-DD format
            max_dates: Maximum number of dates allowed

        Returns:
            List of validated date strings

        Raises:
            InvalidFormatError: If there are too many dates or a date is malformed
        """
        if len(dates) > max_dates:
            raise InvalidFormatError(f"Se pueden consultar como máximo {max_dates} fechas a la vez")

        for date_str in dates:
            parse_date_string(date_str)

        return list(dates)
