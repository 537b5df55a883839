"""
Unit tests for availability service algorithms.

Covers slot generation (lunch split, step size, occupied filtering), the
snapshot-level entry points, booking pre-checks and batch date validation.
"""

import pytest
from datetime import date, datetime

from core.exceptions import InvalidDurationError, InvalidFormatError, SlotUnavailableError
from services.availability_service import AvailabilityService
from shared_types import Closure, DaySnapshot, Interval, ScheduleException, WorkingWindow
from tests.conftest import make_appointment
from utils.datetime_utils import CLINIC_TZ, time_to_minutes

LUNCH = Interval(810, 870)  # 13:30-14:30


class TestGenerateAvailableStarts:
    """Test the slot generator on raw window bounds."""

    def test_standard_day_splits_at_lunch(self):
        starts = AvailabilityService.generate_available_starts(540, 1125, LUNCH, 45)
        assert starts.as_times() == [
            "09:00", "09:45", "10:30", "11:15", "12:00", "12:45",
            "14:30", "15:15", "16:00", "16:45", "17:30",
        ]

    def test_no_candidate_intersects_lunch(self):
        starts = list(AvailabilityService.generate_available_starts(540, 1125, LUNCH, 45))
        for start in starts:
            assert start + 45 <= LUNCH.start or start >= LUNCH.end

        morning = [s for s in starts if s < LUNCH.start]
        afternoon = [s for s in starts if s >= LUNCH.end]
        assert max(morning) + 45 <= 810
        assert min(afternoon) >= 870

    def test_without_lunch(self):
        starts = AvailabilityService.generate_available_starts(540, 720, None, 60)
        assert list(starts) == [540, 600, 660]

    def test_candidate_must_fit_before_window_end(self):
        # 09:00-10:30 fits one 60-minute slot only
        assert list(AvailabilityService.generate_available_starts(540, 630, None, 60)) == [540]

    def test_candidates_never_shift_around_lunch(self):
        """A slot that would fit by starting earlier is not offered."""
        # Lunch 10:40-11:40: 10:30 would cross lunch and is dropped, not moved
        lunch = Interval(640, 700)
        starts = AvailabilityService.generate_available_starts(540, 760, lunch, 45)
        assert starts.as_times() == ["09:00", "09:45", "11:40"]

    def test_lunch_consuming_window_yields_nothing(self):
        starts = AvailabilityService.generate_available_starts(540, 600, Interval(540, 600), 30)
        assert list(starts) == []

    def test_empty_window_yields_nothing(self):
        assert list(AvailabilityService.generate_available_starts(600, 600, None, 30)) == []
        assert list(AvailabilityService.generate_available_starts(700, 600, None, 30)) == []

    def test_duration_longer_than_window(self):
        assert list(AvailabilityService.generate_available_starts(540, 570, None, 45)) == []

    @pytest.mark.parametrize("duration", [0, -15])
    def test_invalid_duration_raises_eagerly(self, duration):
        with pytest.raises(InvalidDurationError):
            AvailabilityService.generate_available_starts(540, 1125, LUNCH, duration)

    def test_occupied_slots_are_skipped(self):
        occupied = [Interval(585, 630), Interval(900, 945)]
        starts = AvailabilityService.generate_available_starts(540, 1125, LUNCH, 45, occupied)
        times = starts.as_times()
        assert "09:45" not in times
        assert "14:30" not in times  # 14:30-15:15 overlaps 15:00-15:45
        assert "15:15" not in times
        assert "09:00" in times and "10:30" in times

    def test_idempotent_and_restartable(self):
        starts = AvailabilityService.generate_available_starts(540, 1125, LUNCH, 45, [Interval(600, 645)])
        first = list(starts)
        second = list(starts)
        again = list(AvailabilityService.generate_available_starts(540, 1125, LUNCH, 45, [Interval(600, 645)]))
        assert first == second == again
        assert first == sorted(first)


class TestOccupiedIntervals:
    def test_only_scheduled_appointments_occupy(self, monday):
        appointments = [
            make_appointment("a1", monday, "09:00"),
            make_appointment("a2", monday, "10:00", status="cancelled"),
            make_appointment("a3", monday, "11:00", status="completed"),
            make_appointment("a4", monday, "12:00", duration=30, status="no_show"),
        ]
        assert AvailabilityService.occupied_intervals(appointments) == [Interval(540, 585)]


class TestGetAvailableTimes:
    """Test availability for a resolved day snapshot."""

    def test_weekly_schedule(self, monday_snapshot):
        times = AvailabilityService.get_available_times(monday_snapshot, 45)
        assert times[0] == "09:00"
        assert times[-1] == "17:30"
        assert len(times) == 11

    def test_existing_appointment_removes_slot(self, monday_snapshot, monday):
        monday_snapshot.appointments = [make_appointment("a1", monday, "10:30")]
        times = AvailabilityService.get_available_times(monday_snapshot, 45)
        assert "10:30" not in times
        assert "09:45" in times and "11:15" in times

    def test_cancelled_appointment_does_not_block(self, monday_snapshot, monday):
        monday_snapshot.appointments = [make_appointment("a1", monday, "10:30", status="cancelled")]
        assert "10:30" in AvailabilityService.get_available_times(monday_snapshot, 45)

    def test_inactive_day_is_empty(self, standard_window):
        sunday = DaySnapshot(specialist_id="specialist-1", date=date(2026, 10, 18), weekly_schedule={1: standard_window})
        assert AvailabilityService.get_available_times(sunday, 45) == []

    def test_closure_is_empty(self, monday_snapshot, monday):
        monday_snapshot.closures = [Closure(start_date=monday, end_date=monday, reason="Feriado")]
        assert AvailabilityService.get_available_times(monday_snapshot, 45) == []

    def test_exception_replaces_weekly_window(self, monday_snapshot, monday):
        monday_snapshot.exceptions = [
            ScheduleException(date=monday, window=WorkingWindow.from_strings("10:00", "12:00"))
        ]
        assert AvailabilityService.get_available_times(monday_snapshot, 60) == ["10:00", "11:00"]

    def test_service_not_allowed_is_empty(self, monday):
        window = WorkingWindow.from_strings("09:00", "12:00", allowed_services=["svc-facial"])
        snapshot = DaySnapshot(specialist_id="specialist-1", date=monday, weekly_schedule={1: window})
        assert AvailabilityService.get_available_times(snapshot, 60, service_id="svc-laser") == []
        assert AvailabilityService.get_available_times(snapshot, 60, service_id="svc-facial") == [
            "09:00", "10:00", "11:00",
        ]

    def test_invalid_duration(self, monday_snapshot):
        with pytest.raises(InvalidDurationError):
            AvailabilityService.get_available_times(monday_snapshot, 0)

    def test_slots_include_end_times(self, monday_snapshot):
        slots = AvailabilityService.get_available_slots(monday_snapshot, 45)
        assert slots[0].to_dict() == {"start_time": "09:00", "end_time": "09:45"}
        assert slots[5].to_dict() == {"start_time": "12:45", "end_time": "13:30"}


class TestCheckBooking:
    """Test the booking pre-check rejection reasons."""

    def _reason(self, snapshot, at: str, duration: int = 45, **kwargs) -> str:
        with pytest.raises(SlotUnavailableError) as exc_info:
            AvailabilityService.check_booking(snapshot, time_to_minutes(at), duration, **kwargs)
        return exc_info.value.reason

    def test_available_slot_returns_interval(self, monday_snapshot):
        assert AvailabilityService.check_booking(monday_snapshot, 540, 45) == Interval(540, 585)

    def test_closed_date(self, monday_snapshot, monday):
        monday_snapshot.closures = [Closure(start_date=monday, end_date=monday)]
        assert self._reason(monday_snapshot, "09:00") == "closed"

    def test_inactive_day(self, standard_window):
        sunday = DaySnapshot(specialist_id="specialist-1", date=date(2026, 10, 18), weekly_schedule={1: standard_window})
        assert self._reason(sunday, "09:00") == "inactive_day"

    def test_outside_hours(self, monday_snapshot):
        assert self._reason(monday_snapshot, "08:30") == "outside_hours"
        assert self._reason(monday_snapshot, "18:30") == "outside_hours"

    def test_lunch_break(self, monday_snapshot):
        assert self._reason(monday_snapshot, "13:00") == "lunch_break"
        assert self._reason(monday_snapshot, "14:00") == "lunch_break"

    def test_ends_exactly_at_lunch_is_allowed(self, monday_snapshot):
        assert AvailabilityService.check_booking(monday_snapshot, time_to_minutes("12:45"), 45) == Interval(765, 810)

    def test_overlap(self, monday_snapshot, monday):
        monday_snapshot.appointments = [make_appointment("a1", monday, "10:00")]
        assert self._reason(monday_snapshot, "10:30") == "overlap"

    def test_overlap_ignores_excluded_appointment(self, monday_snapshot, monday):
        monday_snapshot.appointments = [make_appointment("a1", monday, "10:00")]
        result = AvailabilityService.check_booking(
            monday_snapshot, time_to_minutes("10:30"), 45, exclude_appointment_id="a1"
        )
        assert result == Interval(630, 675)

    def test_service_not_allowed(self, monday):
        window = WorkingWindow.from_strings("09:00", "12:00", allowed_services=["svc-facial"])
        snapshot = DaySnapshot(specialist_id="specialist-1", date=monday, weekly_schedule={1: window})
        assert self._reason(snapshot, "09:00", service_id="svc-laser") == "service_not_allowed"

    def test_pre_check_rejections_are_not_retryable(self, monday_snapshot):
        with pytest.raises(SlotUnavailableError) as exc_info:
            AvailabilityService.check_booking(monday_snapshot, time_to_minutes("08:00"), 45)
        assert exc_info.value.retryable is False

    def test_lead_time_is_checked_when_now_is_given(self, monday_snapshot):
        now = datetime(2026, 10, 19, 10, 0, tzinfo=CLINIC_TZ)
        assert self._reason(monday_snapshot, "09:00", now=now) == "past"
        assert AvailabilityService.check_booking(monday_snapshot, time_to_minutes("12:00"), 45, now=now) == Interval(720, 765)


class TestValidateBatchDates:
    def test_valid_dates(self):
        dates = ["2026-10-19", "2026-10-20"]
        assert AvailabilityService.validate_batch_dates(dates) == dates

    def test_too_many_dates(self):
        with pytest.raises(InvalidFormatError):
            AvailabilityService.validate_batch_dates(["2026-10-19"] * 3, max_dates=2)

    def test_malformed_date(self):
        with pytest.raises(InvalidFormatError):
            AvailabilityService.validate_batch_dates(["2026-10-19", "19/10/2026"])


class TestCheckBookingTime:
    """Test the lead-time rules against the clinic clock."""

    NOW = datetime(2026, 10, 19, 10, 0, tzinfo=CLINIC_TZ)

    def _reason(self, target_date: date, at: str, now: datetime) -> str:
        with pytest.raises(SlotUnavailableError) as exc_info:
            AvailabilityService.check_booking_time(target_date, time_to_minutes(at), now)
        return exc_info.value.reason

    def test_past_date(self):
        assert self._reason(date(2020, 1, 6), "10:30", self.NOW) == "past"

    def test_earlier_today_and_now_are_past(self, monday):
        assert self._reason(monday, "09:00", self.NOW) == "past"
        assert self._reason(monday, "10:00", self.NOW) == "past"

    def test_inside_minimum_lead_time(self, monday):
        assert self._reason(monday, "11:15", self.NOW) == "too_soon"
        assert self._reason(monday, "11:59", self.NOW) == "too_soon"

    def test_exactly_minimum_lead_time_is_allowed(self, monday):
        AvailabilityService.check_booking_time(monday, time_to_minutes("12:00"), self.NOW)

    def test_beyond_booking_horizon(self):
        assert self._reason(date(2026, 11, 19), "10:30", self.NOW) == "too_far"

    def test_last_day_of_horizon_is_allowed(self):
        AvailabilityService.check_booking_time(date(2026, 11, 18), time_to_minutes("10:00"), self.NOW)

    def test_naive_now_is_clinic_time(self, monday):
        assert self._reason(monday, "11:00", datetime(2026, 10, 19, 10, 0)) == "too_soon"

    def test_lead_time_rejections_are_not_retryable(self, monday):
        with pytest.raises(SlotUnavailableError) as exc_info:
            AvailabilityService.check_booking_time(monday, time_to_minutes("09:00"), self.NOW)
        assert exc_info.value.retryable is False
        assert exc_info.value.details == {"date": "2026-10-19", "time": "09:00"}


class TestAvailableTimesWithClock:
    """Slot listings drop starts the lead-time rules would reject."""

    def test_drops_past_and_too_close_starts_today(self, monday_snapshot):
        now = datetime(2026, 10, 19, 10, 0, tzinfo=CLINIC_TZ)
        assert AvailabilityService.get_available_times(monday_snapshot, 45, now=now) == [
            "12:00", "12:45", "14:30", "15:15", "16:00", "16:45", "17:30",
        ]

    def test_future_day_is_unaffected(self, monday_snapshot):
        now = datetime(2026, 10, 17, 18, 0, tzinfo=CLINIC_TZ)
        assert len(AvailabilityService.get_available_times(monday_snapshot, 45, now=now)) == 11

    def test_past_day_is_empty(self, monday_snapshot):
        now = datetime(2026, 10, 20, 8, 0, tzinfo=CLINIC_TZ)
        assert AvailabilityService.get_available_times(monday_snapshot, 45, now=now) == []

    def test_day_beyond_horizon_is_empty(self, monday_snapshot):
        now = datetime(2026, 9, 1, 8, 0, tzinfo=CLINIC_TZ)
        assert AvailabilityService.get_available_slots(monday_snapshot, 45, now=now) == []
