"""
Concurrent payment-state flips on a single installment.

Uses a file-backed SQLite database so every worker thread gets its own
connection and session. SQLite transactions open with BEGIN IMMEDIATE, so
each MarkPaid reads and writes under the write lock; a call that still
fails with a retryable error is retried, as a caller would.
"""

import random
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from shared.core.database import Base, make_engine
from shared.core.exceptions import ConcurrentModification, StorageUnavailable
from lease_service.app.crud.leasing import installments_crud, leases_crud
from lease_service.app.enum.leasing_enum import PaidMarker
from lease_service.app.models.leasing.installments import Installment
from lease_service.app.schemas.leasing.leases_schemas import LeaseCreate

from conftest import FakeNotifier, seed_ledger

FLIPS = 100
MAX_ATTEMPTS = 500


@pytest.fixture
def file_session_factory(tmp_path):
    engine = make_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def target_installment(file_session_factory, admin_user):
    with file_session_factory() as setup:
        seed = seed_ledger(setup)
        lease = leases_crud.create_lease(setup, admin_user, LeaseCreate(
            tenant_id=seed.alice.id, property_id=seed.apartment.id,
            start_date=date(2024, 1, 1), duration_years=1,
            annual_rent=Decimal("12000"), frequency="QUARTERLY"))
        return lease.installments[0].id


class TestSerializedTransactions:

    def test_second_transaction_waits_for_the_write_lock(self, tmp_path):
        engine = make_engine(
            f"sqlite:///{tmp_path / 'lock.db'}",
            connect_args={"check_same_thread": False, "timeout": 0.1},
        )
        try:
            with engine.connect() as first, engine.connect() as second:
                first.begin()
                first.execute(text("SELECT 1"))
                with pytest.raises(OperationalError):
                    second.begin()
        finally:
            engine.dispose()

    def test_waiting_call_sees_the_committed_state(self, file_session_factory, admin_user,
                                                   target_installment):
        notifier = FakeNotifier()
        holder = file_session_factory()
        try:
            installments_crud.update_installment_state(holder, target_installment, PaidMarker.PAID)

            with ThreadPoolExecutor(max_workers=1) as pool:
                def mark():
                    with file_session_factory() as session:
                        return installments_crud.mark_paid(
                            session, admin_user, target_installment, True, notifier=notifier)

                pending = pool.submit(mark)
                time.sleep(0.2)
                holder.commit()
                out = pending.result(timeout=30)
        finally:
            holder.close()

        # PAID -> PAID: applied, but no confirmation
        assert out.paid is True
        assert notifier.payments == []
        with file_session_factory() as check:
            assert check.get(Installment, target_installment).version == 3


class TestConcurrentMarkPaid:

    def test_100_alternating_flips_leave_no_lost_update(self, file_session_factory, admin_user,
                                                        target_installment):
        target = target_installment
        notifier = FakeNotifier()

        def flip(i):
            state = i % 2 == 0
            for _ in range(MAX_ATTEMPTS):
                session = file_session_factory()
                try:
                    out = installments_crud.mark_paid(
                        session, admin_user, target, state, notifier=notifier)
                    return state, session.get(Installment, target).version, out.paid
                except (ConcurrentModification, StorageUnavailable):
                    time.sleep(random.uniform(0, 0.01))
                finally:
                    session.close()
            raise AssertionError(f"flip {i} never applied")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(flip, range(FLIPS)))

        versions = sorted(version for _, version, _ in results)
        assert versions == list(range(2, FLIPS + 2))
        assert all(state == paid for state, _, paid in results)

        last_state = max(results, key=lambda r: r[1])[0]
        with file_session_factory() as check:
            row = check.get(Installment, target)
            assert row.version == FLIPS + 1
            assert row.is_paid is last_state

        # replaying the calls in version order gives the confirmations sent
        paid = False
        confirmations = 0
        for state, _, _ in sorted(results, key=lambda r: r[1]):
            if state and not paid:
                confirmations += 1
            paid = state
        assert len(notifier.payments) == confirmations
