"""
Test configuration and shared fixtures for the scheduling test suite.

Unit tests exercise the engine with hand-built snapshots and need no database.
Integration tests get a fresh in-memory SQLite database per test, with the
schema created from the ORM models.
"""

import os

# Must be set before core.database creates the engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from datetime import date, datetime, time
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import Base, get_db
# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
from models import Appointment, Closure, Patient, ScheduleException, Service, Specialist, WorkSchedule
from shared_types import AppointmentSnapshot, DaySnapshot, WorkingWindow
from utils.datetime_utils import CLINIC_TZ, time_to_minutes

# Fixed clinic clock for booking and availability requests: the Saturday before
# the Monday most tests book on
FROZEN_NOW = datetime(2026, 10, 17, 9, 0, tzinfo=CLINIC_TZ)


@pytest.fixture(scope="function")
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs handlers in a worker thread)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session on a fresh schema."""
    TestingSession = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    session = TestingSession()

    yield session

    session.close()


@pytest.fixture
def foreign_keys(db_engine):
    """Turn on SQLite foreign key enforcement for the shared test connection."""
    with db_engine.connect() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture
def frozen_clock(monkeypatch) -> datetime:
    """Pin the clinic clock used by the booking service and the availability API."""
    monkeypatch.setattr("services.booking_service.clinic_now", lambda: FROZEN_NOW)
    monkeypatch.setattr("api.availability.clinic_now", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture
def client(db_session, frozen_clock):
    from main import app

    def override_get_db():
        return db_session
    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.pop(get_db, None)


# Database fixtures

@pytest.fixture
def specialist(db_session) -> Specialist:
    s = Specialist(name="Lorena Esquivel", email="lorena@example.com")
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture
def facial_service(db_session) -> Service:
    s = Service(name="Limpieza facial", duration=45)
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture
def monday_schedule(db_session, specialist) -> WorkSchedule:
    """Monday 09:00-18:45 with lunch 13:30-14:30."""
    schedule = WorkSchedule(
        specialist_id=specialist.id,
        day_of_week=1,
        start_time=time(9, 0),
        end_time=time(18, 45),
        lunch_start=time(13, 30),
        lunch_end=time(14, 30),
    )
    db_session.add(schedule)
    db_session.commit()
    return schedule


def create_appointment(
    db_session: Session,
    specialist: Specialist,
    appointment_date: date,
    appointment_time: time,
    duration: int | None = 45,
    status: str = "scheduled",
    service: Service | None = None,
    patient_email: str = "ana@example.com",
) -> Appointment:
    """Insert an appointment (and its patient if needed) and commit."""
    patient = db_session.query(Patient).filter(Patient.email == patient_email).first()
    if patient is None:
        patient = Patient(name="Ana Gómez", email=patient_email)
        db_session.add(patient)
        db_session.flush()

    appointment = Appointment(
        specialist_id=specialist.id,
        service_id=service.id if service else None,
        patient_id=patient.id,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        duration=duration,
        status=status,
    )
    db_session.add(appointment)
    db_session.commit()
    return appointment


def create_exception(
    db_session: Session,
    specialist: Specialist,
    exception_date: date,
    start_time: time,
    end_time: time,
    lunch_start: time | None = None,
    lunch_end: time | None = None,
    is_active: bool = True,
) -> ScheduleException:
    exception = ScheduleException(
        specialist_id=specialist.id,
        exception_date=exception_date,
        start_time=start_time,
        end_time=end_time,
        lunch_start=lunch_start,
        lunch_end=lunch_end,
        is_active=is_active,
    )
    db_session.add(exception)
    db_session.commit()
    return exception


def create_closure(
    db_session: Session,
    specialist: Specialist,
    start_date: date,
    end_date: date,
    reason: str | None = "Vacaciones",
    is_active: bool = True,
) -> Closure:
    closure = Closure(
        specialist_id=specialist.id,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        closure_type="vacation",
        is_active=is_active,
    )
    db_session.add(closure)
    db_session.commit()
    return closure


# Engine fixtures (no database)

def make_appointment(
    appointment_id: str,
    on: date,
    at: str,
    duration: int = 45,
    status: str = "scheduled",
    service_id: str | None = None,
) -> AppointmentSnapshot:
    """Build an appointment snapshot from an HH:MM start time."""
    return AppointmentSnapshot(
        id=appointment_id,
        specialist_id="specialist-1",
        date=on,
        time=time_to_minutes(at),
        duration=duration,
        status=status,
        service_id=service_id,
        patient_name="Ana Gómez",
        patient_email="ana@example.com",
        service_name="Limpieza facial",
    )


@pytest.fixture
def standard_window() -> WorkingWindow:
    """09:00-18:45 with lunch 13:30-14:30."""
    return WorkingWindow.from_strings("09:00", "18:45", "13:30", "14:30")


@pytest.fixture
def monday() -> date:
    return date(2026, 10, 19)


@pytest.fixture
def monday_snapshot(standard_window, monday) -> DaySnapshot:
    return DaySnapshot(
        specialist_id="specialist-1",
        date=monday,
        weekly_schedule={1: standard_window},
    )
