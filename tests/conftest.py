# tests/conftest.py

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from barbershop import models  # noqa: F401
from barbershop.auth import create_access_token
from barbershop.core.policy import BookingPolicy
from barbershop.db import get_session
from barbershop.deps import get_now
from barbershop.main import app
from barbershop.models import Barber, BarberBreak, BarberSchedule, Service, User

# Monday 2030-01-07, 08:00 shop time
NOW = datetime(2030, 1, 7, 8, 0)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 13)

POLICY = BookingPolicy(
    open_time=time(9, 0),
    close_time=time(19, 0),
    slot_minutes=15,
    cancellation_tolerance_minutes=60,
    penalty_duration_hours=24,
    min_lead_minutes=60,
    non_subscriber_window_days=7,
    default_distribution_percentage=100,
    price_per_minute=3.87,
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def _user(session, email, role, full_name=""):
    user = User(email=email, password_hash="not-used", full_name=full_name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def shop(session):
    """One barber working Mon-Sat 09:00-18:00 with a Monday 13:00-15:00 break."""
    admin = _user(session, "admin@shop.test", "admin", "Admin")
    client = _user(session, "client@shop.test", "client", "Carla Client")
    other_client = _user(session, "other@shop.test", "client", "Otto Other")

    barber = Barber(name="Bruno", commission_percentage=40.0)
    second_barber = Barber(name="Alex", commission_percentage=50.0)
    session.add(barber)
    session.add(second_barber)
    session.commit()

    for b in (barber, second_barber):
        for weekday in range(7):
            session.add(BarberSchedule(
                barber_id=b.id,
                day_of_week=weekday,
                is_working=weekday != 6,
                start_time=time(9, 0),
                end_time=time(18, 0),
            ))
    session.add(BarberBreak(barber_id=barber.id, day_of_week=0, start_time=time(13, 0),
                            end_time=time(15, 0), description="Lunch"))

    haircut = Service(name="Haircut", duration_minutes=30, price=15.0)
    beard = Service(name="Beard trim", duration_minutes=15, price=8.0)
    fade = Service(name="Fade", duration_minutes=45, price=20.0)
    session.add_all([haircut, beard, fade])
    session.commit()
    for obj in (barber, second_barber, haircut, beard, fade):
        session.refresh(obj)

    return SimpleNamespace(
        admin=admin,
        client=client,
        other_client=other_client,
        barber=barber,
        second_barber=second_barber,
        haircut=haircut,
        beard=beard,
        fade=fade,
    )


def client_dict(user):
    return {"id": user.id, "email": user.email, "full_name": user.full_name, "role": user.role, "barber_id": None}


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def api(engine):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_now] = lambda: NOW
    yield TestClient(app)
    app.dependency_overrides.clear()
