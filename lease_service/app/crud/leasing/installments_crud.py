import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import flag_modified

from shared.core.exceptions import EntityNotFound, InvalidLeaseParameters
from shared.core.schemas import UserToken

from ...enum.leasing_enum import PaidMarker
from ...models.leasing.installments import Installment
from ...models.leasing.leases import Lease
from ...models.leasing.tenants import Tenant
from ...schemas.leasing.installments_schemas import InstallmentCreate, InstallmentOut
from ..common.persistence import ledger_transaction, storage_guard
from . import ownership
from .leases_crud import find_lease_by_id

logger = logging.getLogger(__name__)


def _out(rows) -> List[InstallmentOut]:
    return [InstallmentOut.model_validate(row) for row in rows]


def _parse_marker(value) -> PaidMarker:
    try:
        return PaidMarker.from_value(value)
    except ValueError as e:
        raise InvalidLeaseParameters(str(e), field="paid")


def _scoped(db: Session, user: UserToken):
    return db.query(Installment).filter(*ownership.installment_scope(user))


def _require_lease(db: Session, user: UserToken, lease_id: UUID) -> Lease:
    lease = find_lease_by_id(db, lease_id)
    if lease is None:
        logger.warning("Lease %s not found", lease_id)
        raise EntityNotFound("Lease", lease_id)
    ownership.ensure_access(db, user, lease.tenant_id, "Lease", lease_id)
    return lease


# ----------------------------------------------------
# Store operations
# ----------------------------------------------------
def find_installments_by_lease_id(db: Session, lease_id: UUID) -> List[Installment]:
    return (
        db.query(Installment)
        .filter(Installment.lease_id == lease_id)
        .order_by(Installment.number)
        .all()
    )


def update_installment_state(db: Session, installment_id: UUID, state: PaidMarker):
    """
    Lock the row and write ``state``. Returns ``(installment, previous_state)``.

    Runs inside the caller's transaction; the version column turns a lost
    race into StaleDataError at flush.
    """
    installment = (
        db.query(Installment)
        .filter(Installment.id == installment_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if installment is None:
        raise EntityNotFound("Installment", installment_id)

    previous = installment.paid_marker
    installment.paid = state.value
    # every applied call bumps the version, including PAID -> PAID
    flag_modified(installment, "paid")
    db.flush()
    return installment, previous


# ----------------------------------------------------
# Reads
# ----------------------------------------------------
def get_installment(db: Session, user: UserToken, installment_id: UUID) -> InstallmentOut:
    with storage_guard(db, "get installment"):
        installment = (
            db.query(Installment)
            .options(joinedload(Installment.lease))
            .filter(Installment.id == installment_id)
            .first()
        )
        if installment is None:
            logger.warning("Installment %s not found", installment_id)
            raise EntityNotFound("Installment", installment_id)
        ownership.ensure_access(
            db, user, installment.lease.tenant_id, "Installment", installment_id)
        return InstallmentOut.model_validate(installment)


def list_installments_for_lease(db: Session, user: UserToken, lease_id: UUID) -> List[InstallmentOut]:
    with storage_guard(db, "list lease installments"):
        _require_lease(db, user, lease_id)
        return _out(find_installments_by_lease_id(db, lease_id))


def list_my_installments(db: Session, user: UserToken) -> List[InstallmentOut]:
    with storage_guard(db, "list my installments"):
        rows = (
            db.query(Installment)
            .filter(Installment.lease.has(Lease.tenant.has(Tenant.user_id == user.user_id)))
            .order_by(Installment.due_date, Installment.number)
            .all()
        )
        return _out(rows)


def list_unpaid(db: Session, user: UserToken) -> List[InstallmentOut]:
    with storage_guard(db, "list unpaid installments"):
        rows = (
            _scoped(db, user)
            .filter(Installment.paid == PaidMarker.UNPAID.value)
            .order_by(Installment.due_date, Installment.lease_id, Installment.number)
            .all()
        )
        return _out(rows)


def list_overdue_unpaid(db: Session, user: UserToken, as_of: Optional[date] = None) -> List[InstallmentOut]:
    """Unpaid installments due strictly before ``as_of`` (today when omitted)."""
    as_of = as_of or date.today()
    with storage_guard(db, "list overdue installments"):
        rows = (
            _scoped(db, user)
            .filter(
                Installment.paid == PaidMarker.UNPAID.value,
                Installment.due_date < as_of,
            )
            .order_by(Installment.due_date, Installment.lease_id, Installment.number)
            .all()
        )
        return _out(rows)


def count_unpaid_per_lease(db: Session, user: UserToken, lease_id: UUID) -> int:
    with storage_guard(db, "count unpaid installments"):
        _require_lease(db, user, lease_id)
        return (
            db.query(Installment)
            .filter(
                Installment.lease_id == lease_id,
                Installment.paid == PaidMarker.UNPAID.value,
            )
            .count()
        )


def list_by_paid_marker(db: Session, user: UserToken, marker) -> List[InstallmentOut]:
    """Lookup by the stored marker literal ('S' or 'N'); booleans are accepted too."""
    state = _parse_marker(marker)
    with storage_guard(db, "list installments by marker"):
        rows = (
            _scoped(db, user)
            .filter(Installment.paid == state.value)
            .order_by(Installment.due_date, Installment.lease_id, Installment.number)
            .all()
        )
        return _out(rows)


# ----------------------------------------------------
# Mutations
# ----------------------------------------------------
def create_installment(db: Session, user: UserToken, payload: InstallmentCreate,
                       deadline: Optional[datetime] = None) -> InstallmentOut:
    ownership.ensure_elevated(user, "add installments")

    if payload.number < 1:
        raise InvalidLeaseParameters("number must be at least 1", field="number")
    try:
        amount = Decimal(str(payload.amount))
    except (InvalidOperation, ValueError):
        raise InvalidLeaseParameters("amount must be a decimal amount", field="amount")
    if not amount.is_finite() or amount <= 0:
        raise InvalidLeaseParameters("amount must be positive", field="amount")
    state = _parse_marker(payload.paid if payload.paid is not None else False)

    with ledger_transaction(db, "create installment", deadline):
        if find_lease_by_id(db, payload.lease_id) is None:
            raise EntityNotFound("Lease", payload.lease_id)
        duplicate = (
            db.query(Installment.id)
            .filter(Installment.lease_id == payload.lease_id,
                    Installment.number == payload.number)
            .first()
        )
        if duplicate:
            raise InvalidLeaseParameters(
                f"Lease {payload.lease_id} already has installment #{payload.number}",
                field="number")

        installment = Installment(
            lease_id=payload.lease_id,
            number=payload.number,
            due_date=payload.due_date,
            amount=amount,
            paid=state.value,
        )
        db.add(installment)
        try:
            db.flush()
        except IntegrityError as e:
            raise InvalidLeaseParameters(
                f"Lease {payload.lease_id} already has installment #{payload.number}",
                field="number") from e

    logger.info("Installment #%s added to lease %s by %s",
                payload.number, payload.lease_id, user.user_id)
    return InstallmentOut.model_validate(installment)


def mark_paid(db: Session, user: UserToken, installment_id: UUID, new_state,
              notifier=None, deadline: Optional[datetime] = None) -> InstallmentOut:
    """
    Set the paid flag of one installment.

    Both directions are allowed. Only an UNPAID -> PAID transition sends a
    payment confirmation, after the commit.
    """
    ownership.ensure_elevated(user, "change payment state")
    state = _parse_marker(new_state)

    with ledger_transaction(db, "mark installment paid", deadline,
                            kind="Installment", entity_id=installment_id):
        installment, previous = update_installment_state(db, installment_id, state)
        lease = installment.lease
        confirmation = None
        if previous is PaidMarker.UNPAID and state is PaidMarker.PAID:
            confirmation = {
                "tenant_email": lease.tenant.email,
                "tenant_name": lease.tenant.full_name,
                "installment_number": installment.number,
                "amount": installment.amount,
                "property_address": lease.property.address,
            }

    logger.info("Installment %s of lease %s: %s -> %s (version %s)",
                installment_id, lease.id, previous.name, state.name, installment.version)

    if confirmation is not None and notifier is not None:
        notifier.notify_payment_confirmed(**confirmation)

    return InstallmentOut.model_validate(installment)
