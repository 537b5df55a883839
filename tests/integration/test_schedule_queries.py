"""Integration tests for loading scheduling snapshots from the database."""

import pytest
from datetime import date, time

from sqlalchemy.orm import sessionmaker

from core.database import get_db_context
from core.exceptions import ScheduleIntegrityError
from models import Appointment, Service, Specialist, WorkSchedule
from shared_types import Interval, WorkingWindow
from tests.conftest import create_appointment, create_closure, create_exception
from utils.schedule_queries import (
    fetch_appointments_in_range, fetch_day_snapshot, fetch_future_appointments_for_weekday,
    fetch_weekly_schedule, get_service_duration,
)

MONDAY = date(2026, 10, 19)


class TestFetchWeeklySchedule:
    def test_converts_rows_to_windows(self, db_session, specialist, monday_schedule):
        schedule = fetch_weekly_schedule(db_session, specialist.id)
        assert schedule == {1: WorkingWindow(start=540, end=1125, lunch=Interval(810, 870))}

    def test_inactive_rows_are_skipped(self, db_session, specialist, monday_schedule):
        monday_schedule.is_active = False
        db_session.commit()
        assert fetch_weekly_schedule(db_session, specialist.id) == {}

    def test_allowed_services_are_loaded(self, db_session, specialist):
        db_session.add(WorkSchedule(
            specialist_id=specialist.id, day_of_week=2, start_time=time(9, 0), end_time=time(12, 0),
            allowed_services=["svc-1", "svc-2"],
        ))
        db_session.commit()
        assert fetch_weekly_schedule(db_session, specialist.id)[2].allowed_services == ("svc-1", "svc-2")

    def test_two_active_rows_for_one_day(self, db_session, specialist, monday_schedule):
        db_session.add(WorkSchedule(
            specialist_id=specialist.id, day_of_week=1, start_time=time(10, 0), end_time=time(12, 0),
        ))
        db_session.commit()
        with pytest.raises(ScheduleIntegrityError):
            fetch_weekly_schedule(db_session, specialist.id)


class TestFetchDaySnapshot:
    def test_collects_everything_for_the_date(self, db_session, specialist, monday_schedule, facial_service):
        create_exception(db_session, specialist, MONDAY, time(10, 0), time(14, 0))
        create_exception(db_session, specialist, date(2026, 10, 20), time(10, 0), time(14, 0))
        create_closure(db_session, specialist, date(2026, 10, 1), date(2026, 10, 2))
        create_appointment(db_session, specialist, MONDAY, time(11, 0), service=facial_service)
        create_appointment(db_session, specialist, MONDAY, time(12, 0), status="cancelled")
        create_appointment(db_session, specialist, date(2026, 10, 20), time(11, 0))

        snapshot = fetch_day_snapshot(db_session, specialist.id, MONDAY)

        assert snapshot.date == MONDAY
        assert set(snapshot.weekly_schedule) == {1}
        assert [e.date for e in snapshot.exceptions] == [MONDAY]
        assert snapshot.exceptions[0].window.lunch is None
        assert snapshot.closures == []
        assert len(snapshot.appointments) == 1
        appointment = snapshot.appointments[0]
        assert appointment.time == 660
        assert appointment.service_name == "Limpieza facial"
        assert appointment.patient_email == "ana@example.com"

    def test_covering_closure_is_loaded(self, db_session, specialist, monday_schedule):
        create_closure(db_session, specialist, date(2026, 10, 15), date(2026, 10, 25), reason="Vacaciones")
        snapshot = fetch_day_snapshot(db_session, specialist.id, MONDAY)
        assert [c.reason for c in snapshot.closures] == ["Vacaciones"]

    def test_missing_duration_falls_back(self, db_session, specialist, monday_schedule, facial_service):
        legacy_service = Service(name="Masaje", duration=None)
        db_session.add(legacy_service)
        db_session.commit()
        create_appointment(db_session, specialist, MONDAY, time(9, 0), duration=None, service=facial_service)
        create_appointment(db_session, specialist, MONDAY, time(10, 0), duration=None, service=legacy_service)

        durations = [a.duration for a in fetch_day_snapshot(db_session, specialist.id, MONDAY).appointments]
        assert durations == [45, 45]


class TestAppointmentQueries:
    def test_future_appointments_for_weekday(self, db_session, specialist):
        create_appointment(db_session, specialist, date(2026, 10, 12), time(9, 0))   # past Monday
        create_appointment(db_session, specialist, MONDAY, time(9, 0))
        create_appointment(db_session, specialist, date(2026, 10, 20), time(9, 0))   # Tuesday
        create_appointment(db_session, specialist, date(2026, 10, 26), time(9, 0))

        result = fetch_future_appointments_for_weekday(db_session, specialist.id, 1, today=MONDAY)
        assert [a.date for a in result] == [MONDAY, date(2026, 10, 26)]

    def test_appointments_in_range_are_inclusive(self, db_session, specialist):
        create_appointment(db_session, specialist, date(2026, 10, 18), time(9, 0))
        create_appointment(db_session, specialist, MONDAY, time(9, 0))
        create_appointment(db_session, specialist, date(2026, 10, 21), time(9, 0))
        create_appointment(db_session, specialist, date(2026, 10, 22), time(9, 0))

        result = fetch_appointments_in_range(db_session, specialist.id, MONDAY, date(2026, 10, 21))
        assert [a.date for a in result] == [MONDAY, date(2026, 10, 21)]


class TestServiceDuration:
    def test_known_service(self, db_session, facial_service):
        assert get_service_duration(db_session, facial_service.id) == 45

    def test_no_service_uses_default(self, db_session):
        assert get_service_duration(db_session, None) == 45

    def test_service_without_duration_uses_default(self, db_session):
        service = Service(name="Consulta")
        db_session.add(service)
        db_session.commit()
        assert get_service_duration(db_session, service.id) == 45

    def test_unknown_service_raises(self, db_session):
        with pytest.raises(LookupError):
            get_service_duration(db_session, "missing")


class TestDbContext:
    """get_db_context commits a clean block and rolls back a failed one."""

    @pytest.fixture
    def context_sessions(self, db_engine, monkeypatch):
        monkeypatch.setattr(
            "core.database.SessionLocal",
            sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False),
        )

    def test_commits_and_reads_snapshot(self, context_sessions, db_session):
        with get_db_context() as db:
            specialist = Specialist(name="Marina Ruiz")
            db.add(specialist)
            db.flush()
            db.add(WorkSchedule(
                specialist_id=specialist.id, day_of_week=1, start_time=time(9, 0), end_time=time(12, 0),
            ))

        with get_db_context() as db:
            snapshot = fetch_day_snapshot(db, specialist.id, MONDAY)
        assert snapshot.weekly_schedule == {1: WorkingWindow(start=540, end=720)}

    def test_rolls_back_on_error(self, context_sessions, db_session):
        with pytest.raises(ScheduleIntegrityError):
            with get_db_context() as db:
                specialist = Specialist(name="Marina Ruiz")
                db.add(specialist)
                db.flush()
                for _ in range(2):
                    db.add(WorkSchedule(
                        specialist_id=specialist.id, day_of_week=1, start_time=time(9, 0), end_time=time(12, 0),
                    ))
                db.flush()
                fetch_weekly_schedule(db, specialist.id)

        assert db_session.query(Specialist).count() == 0
