"""
Pytest fixtures for the lease desk test suite.

Provides:
- A throw-away SQLite database (aiosqlite) per test
- Factories for users and apartments
- A workflow engine wired to a recording notification sink

Environment Variables:
- SECRET_KEY / DB_DSN are set to test values before the application is
  imported; the module-level engine is never connected to.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DB_DSN", "sqlite+aiosqlite:///./leasedesk-unused.db")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "10000/minute")
os.environ.setdefault("RATE_LIMIT_DECISION", "10000/minute")
os.environ.setdefault("PHONE_DEFAULT_REGION", "VN")

from decimal import Decimal
from typing import List, Optional

import pytest

from leasedesk.core import get_settings
from leasedesk.infrastructure.database import build_engine, build_session_factory
from leasedesk.models import Apartment, ApartmentStatus, Base, User
from leasedesk.services.lease_service import Actor, LeaseWorkflowEngine
from leasedesk.services.notification_service import LeaseEvent, NotificationDispatcher


class RecordingSink:
    """Notification sink that keeps every event it receives."""

    def __init__(self):
        self.events: List[LeaseEvent] = []

    async def emit(self, event: LeaseEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh file-backed SQLite database with the full schema."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'leasedesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def settings():
    return get_settings()


# =============================================================================
# Workflow fixtures
# =============================================================================


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def notifier(sink):
    return NotificationDispatcher(sink)


@pytest.fixture
def lease_engine(session_factory, notifier, settings):
    return LeaseWorkflowEngine(session_factory, notifier, settings)


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_user(session_factory):
    """Create a user and return it as an :class:`Actor`."""
    counter = {"n": 0}

    async def _make(
        role: str = "user",
        email: Optional[str] = None,
        *,
        first: str = "Test",
        last: str = "Person",
        phone: Optional[str] = "+84900000001",
        is_active: bool = True,
    ) -> Actor:
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@mail.com"
        async with session_factory() as sess:
            user = User(
                email=email,
                role=role,
                first=first,
                last=last,
                phone=phone,
                is_active=is_active,
            )
            sess.add(user)
            await sess.commit()
            return Actor(
                id=user.id,
                role=user.role,
                email=user.email,
                first=user.first,
                last=user.last,
                phone=user.phone,
            )

    return _make


@pytest.fixture
def make_apartment(session_factory):
    """Create an apartment listed for rent and/or sale; returns its id."""
    counter = {"n": 0}

    async def _make(
        *,
        owner_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        for_rent: bool = True,
        for_sale: bool = False,
        status: str = ApartmentStatus.vacant.value,
        monthly_rent: Optional[Decimal] = Decimal("1500.00"),
        sale_price: Optional[Decimal] = Decimal("250000.00"),
        is_active: bool = True,
    ) -> int:
        counter["n"] += 1
        async with session_factory() as sess:
            apartment = Apartment(
                apartment_number=f"A-{100 + counter['n']}",
                owner_id=owner_id,
                tenant_id=tenant_id,
                monthly_rent=monthly_rent,
                sale_price=sale_price,
                is_listed_for_rent=for_rent,
                is_listed_for_sale=for_sale,
                status=status,
                is_active=is_active,
            )
            sess.add(apartment)
            await sess.commit()
            return apartment.id

    return _make


@pytest.fixture
def fetch(session_factory):
    """Read a row back through a fresh session."""

    async def _fetch(model, id):
        async with session_factory() as sess:
            return await sess.get(model, id)

    return _fetch


@pytest.fixture
def guest_contact():
    return {
        "contact_name": "Nguyen Van An",
        "contact_email": "an.nguyen@mail.com",
        "contact_phone": "0900000099",
    }

