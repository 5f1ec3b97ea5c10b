"""Test configuration and fixtures."""

import os

# Point the application at an in-memory database before it is imported
os.environ.setdefault("PSQL", "sqlite://")

import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from weather_api.main import app
from weather_api.database import Base, RETRY_POLICY_KEY, build_retry_policy, get_db
from weather_api.models import Station, Weather

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def test_db():
    """Create a test database with tables."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    # Create session
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine
    )

    db = TestingSessionLocal()

    yield db

    db.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _client_with_session(session):
    def override_get_db():
        try:
            yield session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture(scope="function")
def client(test_db):
    """Create a test client with test database."""
    with _client_with_session(test_db) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def failing_session():
    """Mock session; tests choose the error via execute.side_effect."""
    policy = build_retry_policy(3).copy(sleep=lambda seconds: None)
    return MagicMock(spec=Session, info={RETRY_POLICY_KEY: policy})


@pytest.fixture
def failing_client(failing_session):
    """Create a test client whose database rejects every query."""
    with _client_with_session(failing_session) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_stations(test_db):
    """Create sample stations, one without elevation."""
    stations = [
        Station(
            station_number=96001,
            station_name="Stasiun Meteorologi Maimun Saleh",
            latitude=5.87655,
            longitude=95.33785,
            elevation=126.0,
        ),
        Station(
            station_number=97230,
            station_name="Stasiun Meteorologi I Gusti Ngurah Rai",
            latitude=-8.74817,
            longitude=115.16717,
            elevation=None,
        ),
        Station(
            station_number=96749,
            station_name="Stasiun Klimatologi Bogor",
            latitude=-6.5,
            longitude=106.75,
            elevation=0.0,
        ),
    ]

    for station in stations:
        test_db.add(station)

    test_db.commit()

    return stations


@pytest.fixture
def sample_observations(test_db, sample_stations):
    """Create January 2023 observations for station 97230 and one other station."""
    observations = [
        Weather(
            station_number=97230,
            tanggal="2023-01-15",
            tn=24.5,
            tx=None,
            tavg=27.1,
            rh_avg=84.0,
            rr=0.0,
            ss=3.2,
            ff_x=7.0,
            ddd_x=270,
            ff_avg=3.0,
            ddd_car=None,
        ),
        Weather(
            station_number=97230,
            tanggal="2023-01-02",
            tn=23.8,
            tx=31.2,
            tavg=26.9,
            rh_avg=None,
            rr=12.4,
            ss=None,
            ff_x=5.0,
            ddd_x=250,
            ff_avg=2.0,
            ddd_car=225,
        ),
        Weather(
            station_number=97230,
            tanggal="2023-02-01",
            tn=24.0,
            tx=32.0,
        ),
        Weather(
            station_number=96001,
            tanggal="2023-01-15",
            tn=21.0,
            tx=30.5,
        ),
    ]

    for observation in observations:
        test_db.add(observation)

    test_db.commit()

    return observations
