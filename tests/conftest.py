"""
Pytest fixtures for the lease ledger test suite.

Provides:
- an in-memory SQLite database per test (StaticPool, one shared connection)
- seeded users, tenants and properties
- caller identities for every role
- a recording notifier standing in for the email trigger
"""

import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("SMTP_HOST", None)

from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shared.core.database import Base
from shared.core.schemas import UserToken
from shared.models.users import User
from shared.utils.enums import UserRole

import lease_service.app.models  # noqa: F401
from lease_service.app.crud.leasing import leases_crud
from lease_service.app.models.leasing.tenants import Tenant
from lease_service.app.models.properties.properties import Property
from lease_service.app.schemas.leasing.leases_schemas import LeaseCreate


class FakeNotifier:
    """Records every notification instead of sending it."""

    def __init__(self):
        self.new_leases = []
        self.payments = []

    def notify_new_lease(self, tenant_email, tenant_name, property_address):
        self.new_leases.append({
            "tenant_email": tenant_email,
            "tenant_name": tenant_name,
            "property_address": property_address,
        })

    def notify_payment_confirmed(self, tenant_email, tenant_name, installment_number,
                                 amount, property_address):
        self.payments.append({
            "tenant_email": tenant_email,
            "tenant_name": tenant_name,
            "installment_number": installment_number,
            "amount": amount,
            "property_address": property_address,
        })


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False,
                        expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def seed_ledger(session):
    """Two tenants with their logins, plus one property of each kind."""
    alice_login = User(email="alice@example.com", full_name="Alice Rossi")
    bob_login = User(email="bob@example.com", full_name="Bob Bianchi")
    staff_login = User(email="staff@example.com", full_name="Staff Member")
    session.add_all([alice_login, bob_login, staff_login])
    session.flush()

    alice = Tenant(user_id=alice_login.id, first_name="Alice", last_name="Rossi",
                   tax_code="RSSALC80A01H501U")
    bob = Tenant(user_id=bob_login.id, first_name="Bob", last_name="Bianchi",
                 tax_code="BNCBBB75B02F205X")
    session.add_all([alice, bob])

    apartment = Property(address="Via Roma 1", city="Milano", area_sqm=Decimal("85.00"),
                         property_type="APARTMENT", attributes={"floor": 2, "rooms": 3})
    shop = Property(address="Corso Italia 10", city="Torino", area_sqm=Decimal("120.00"),
                    property_type="SHOP", attributes={"shop_windows": 2, "storage_sqm": "15.00"})
    office = Property(address="Piazza Duomo 5", city="Milano", area_sqm=Decimal("200.00"),
                      property_type="OFFICE", attributes={"workstations": 20, "meeting_rooms": 2})
    session.add_all([apartment, shop, office])
    session.commit()

    return SimpleNamespace(
        alice_login=alice_login, bob_login=bob_login, staff_login=staff_login,
        alice=alice, bob=bob,
        apartment=apartment, shop=shop, office=office,
    )


@pytest.fixture
def seed(db):
    return seed_ledger(db)


# =============================================================================
# Caller identities
# =============================================================================


@pytest.fixture
def admin_user():
    return UserToken(user_id=uuid4(), email="admin@example.com", roles=[UserRole.ADMIN])


@pytest.fixture
def manager_user():
    return UserToken(user_id=uuid4(), email="manager@example.com", roles=[UserRole.MANAGER])


@pytest.fixture
def alice_user(seed):
    return UserToken(user_id=seed.alice_login.id, email=seed.alice_login.email,
                     roles=[UserRole.TENANT])


@pytest.fixture
def bob_user(seed):
    return UserToken(user_id=seed.bob_login.id, email=seed.bob_login.email,
                     roles=[UserRole.TENANT])


@pytest.fixture
def notifier():
    return FakeNotifier()


# =============================================================================
# Leases
# =============================================================================


@pytest.fixture
def make_lease(db, seed, manager_user):
    """Create a lease through the core; defaults to Alice renting the apartment."""

    def _make(tenant=None, prop=None, start_date=date(2024, 1, 1), duration_years=1,
              annual_rent="12000", frequency="QUARTERLY", notifier=None):
        payload = LeaseCreate(
            tenant_id=(tenant or seed.alice).id,
            property_id=(prop or seed.apartment).id,
            start_date=start_date,
            duration_years=duration_years,
            annual_rent=Decimal(annual_rent),
            frequency=frequency,
        )
        return leases_crud.create_lease(db, manager_user, payload, notifier=notifier)

    return _make
