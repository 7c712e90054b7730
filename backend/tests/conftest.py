# backend/tests/conftest.py
"""
Pytest configuration for the marketplace booking core.

Every test gets a fresh in-memory SQLite database. Redis is disabled so the
distributed booking lock fails open; tests that exercise the lock patch the
client directly.
"""

import os

# Set testing mode BEFORE any marketplace imports
os.environ["ENVIRONMENT"] = "test"
os.environ["IS_TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["CI"] = "1"

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional
from unittest.mock import MagicMock

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
import ulid

from marketplace.api.dependencies import get_db, get_event_publisher
from marketplace.core.booking_lock import reset_redis_client
from marketplace.core.config import settings
from marketplace.database import Base
from marketplace.main import create_app
from marketplace.models import AvailabilityWindow, Booking, BookingStatus, Service, User, UserRole
from marketplace.services.base import BaseService
from tests.utils.booking_builders import EVENT_DAY, parse_clock

settings.is_testing = True


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def db() -> Session:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(autouse=True)
def _isolate_process_state():
    """Drop cached Redis clients and in-process service metrics between tests."""
    reset_redis_client()
    BaseService._class_metrics.clear()
    yield
    reset_redis_client()


# ============================================================================
# Factories
# ============================================================================


def _make_user(db: Session, role: UserRole, name: str) -> User:
    user_id = str(ulid.ULID())
    user = User(
        id=user_id,
        email=f"{name.lower().replace(' ', '.')}.{user_id[-6:].lower()}@example.com",
        full_name=name,
        role=role.value,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def vendor(db: Session) -> User:
    return _make_user(db, UserRole.VENDOR, "Harbor Catering")


@pytest.fixture
def other_vendor(db: Session) -> User:
    return _make_user(db, UserRole.VENDOR, "Lakeside Sound")


@pytest.fixture
def customer(db: Session) -> User:
    return _make_user(db, UserRole.CUSTOMER, "Dana Reyes")


@pytest.fixture
def service(db: Session, vendor: User) -> Service:
    offering = Service(vendor_id=vendor.id, name="Wedding buffet", base_price=Decimal("850.00"))
    db.add(offering)
    db.commit()
    return offering


@pytest.fixture
def add_window(db: Session) -> Callable[..., AvailabilityWindow]:
    def _add(
        vendor_id: str,
        start: str,
        end: str,
        day: date = EVENT_DAY,
        is_open: bool = True,
    ) -> AvailabilityWindow:
        window = AvailabilityWindow(
            vendor_id=vendor_id,
            window_date=day,
            start_time=parse_clock(start),
            end_time=parse_clock(end),
            is_open=is_open,
        )
        db.add(window)
        db.commit()
        return window

    return _add


@pytest.fixture
def add_booking(db: Session, customer: User) -> Callable[..., Booking]:
    def _add(
        vendor_id: str,
        start: datetime,
        end: Optional[datetime] = None,
        status: BookingStatus = BookingStatus.ACCEPTED,
        customer_id: Optional[str] = None,
    ) -> Booking:
        booking = Booking(
            customer_id=customer_id or customer.id,
            vendor_id=vendor_id,
            event_start=start,
            event_end=end,
            status=status,
            total_amount=Decimal("400.00"),
            location="12 Pier Road",
        )
        db.add(booking)
        db.commit()
        return booking

    return _add


# ============================================================================
# Notifications and HTTP
# ============================================================================


@pytest.fixture
def publisher() -> MagicMock:
    return MagicMock(name="EventPublisher")


@pytest.fixture
def client(db: Session, publisher: MagicMock) -> TestClient:
    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: publisher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
