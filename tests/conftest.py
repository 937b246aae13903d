"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.database import get_db
# Import all models to ensure all tables are created
from app.db.models import Base, Project, Account, Company, Task, TaskList
from app.services.geocoding import get_geocoder


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


# Create a shared test database engine
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeGeocoder:
    """Geocoder stand-in that resolves every address except those it is told to reject."""

    def __init__(self):
        self.location = {"lat": 43.6532, "lng": -79.3832}
        self.unresolvable = set()
        self.calls = []

    async def geocode(self, address):
        self.calls.append(address)
        if any(bad in address for bad in self.unresolvable):
            return None
        return dict(self.location)


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def geocoder():
    """Install a fake geocoder for the duration of a test."""
    fake = FakeGeocoder()
    app.dependency_overrides[get_geocoder] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_geocoder, None)


@pytest.fixture
def client(geocoder):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def test_project(db_session):
    """Create a test project."""
    project = Project(
        project_name="Maple Duplex",
        strategy="BRRRR",
        stage="Acquisition",
        address1="12 Maple St",
        city="Toronto",
        state="ON",
        postal_code="M5V 2T6",
        country="Canada",
        lat=43.6532,
        lng=-79.3832,
        updates=[],
        photo_log=[],
        expenses=[],
        incomes=[],
    )
    db_session.add(project)
    db_session.commit()
    db_session.refresh(project)
    return project


@pytest.fixture
def session_factory():
    """Factory for extra sessions on the test database."""
    return TestingSessionLocal
