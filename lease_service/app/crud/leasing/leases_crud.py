import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.core.config import settings
from shared.core.exceptions import EntityNotFound
from shared.core.schemas import UserToken

from ...enum.leasing_enum import PaidMarker
from ...models.leasing.installments import Installment
from ...models.leasing.leases import Lease
from ...models.leasing.tenants import Tenant
from ...models.properties.properties import Property
from ...schemas.leasing.installments_schemas import InstallmentOut
from ...schemas.leasing.leases_schemas import (
    LeaseCreate, LeaseOut, LeaseRequest, LeaseUnpaidOut, LeaseUpdate
)
from ..common.persistence import check_deadline, ledger_transaction, storage_guard
from . import ownership
from .installment_scheduler import (
    LeaseTerms, ScheduledInstallment, generate_schedule, schedule_matches_terms, validate_terms
)

logger = logging.getLogger(__name__)

TERM_FIELDS = ("start_date", "duration_years", "annual_rent", "frequency")


# ----------------------------------------------------
# Store operations
# ----------------------------------------------------
def find_lease_by_id(db: Session, lease_id: UUID, include_relations: bool = False) -> Optional[Lease]:
    q = db.query(Lease)
    if include_relations:
        q = q.options(
            selectinload(Lease.installments),
            joinedload(Lease.property),
            joinedload(Lease.tenant).joinedload(Tenant.user),
        )
    return q.filter(Lease.id == lease_id).first()


def find_leases_by_tenant_id(db: Session, tenant_id: UUID) -> List[Lease]:
    return (
        db.query(Lease)
        .options(selectinload(Lease.installments))
        .filter(Lease.tenant_id == tenant_id)
        .order_by(Lease.start_date, Lease.id)
        .all()
    )


def find_leases_by_owner_email(db: Session, email: str) -> List[Lease]:
    return (
        db.query(Lease)
        .options(selectinload(Lease.installments))
        .filter(ownership.lease_owner_email_filter(email))
        .order_by(Lease.start_date, Lease.id)
        .all()
    )


def save_lease_with_installments(db: Session, lease: Lease, schedule: List[ScheduledInstallment],
                                 deadline: Optional[datetime] = None) -> Lease:
    """Persist ``lease`` and its whole schedule in one transaction, or nothing."""
    with ledger_transaction(db, "save lease", deadline):
        db.add(lease)
        for item in schedule:
            check_deadline(deadline, "save lease")
            lease.installments.append(Installment(
                number=item.number,
                due_date=item.due_date,
                amount=item.amount,
                paid=item.paid.value,
            ))
        db.flush()
    return lease


def delete_lease_cascade(db: Session, lease: Lease):
    """Installments go first, then the lease. Runs inside the caller's transaction."""
    removed = (
        db.query(Installment)
        .filter(Installment.lease_id == lease.id)
        .delete(synchronize_session="fetch")
    )
    db.expire(lease, ["installments"])
    db.delete(lease)
    db.flush()
    return removed


# ----------------------------------------------------
# Read model
# ----------------------------------------------------
def lease_terms(lease: Lease) -> LeaseTerms:
    return LeaseTerms(
        start_date=lease.start_date,
        duration_years=lease.duration_years,
        annual_rent=Decimal(str(lease.annual_rent)),
        frequency=lease.frequency,
    )


def to_lease_out(lease: Lease) -> LeaseOut:
    installments = list(lease.installments)
    return LeaseOut.model_validate({
        "id": lease.id,
        "tenant_id": lease.tenant_id,
        "property_id": lease.property_id,
        "start_date": lease.start_date,
        "duration_years": lease.duration_years,
        "annual_rent": lease.annual_rent,
        "frequency": lease.frequency,
        "tenant_name": lease.tenant.full_name if lease.tenant else None,
        "property_address": lease.property.address if lease.property else None,
        "created_at": lease.created_at,
        "updated_at": lease.updated_at,
        "schedule_consistent": schedule_matches_terms(lease_terms(lease), installments),
        "installments": [InstallmentOut.model_validate(i) for i in installments],
    })


def _require(db: Session, model, kind: str, entity_id):
    obj = db.get(model, entity_id)
    if obj is None:
        logger.warning("%s %s not found", kind, entity_id)
        raise EntityNotFound(kind, entity_id)
    return obj


# ----------------------------------------------------
# Create
# ----------------------------------------------------
def create_lease(db: Session, user: UserToken, payload: LeaseCreate,
                 notifier=None, deadline: Optional[datetime] = None) -> LeaseOut:
    ownership.ensure_elevated(user, "create leases")
    terms = validate_terms(
        payload.start_date, payload.duration_years, payload.annual_rent, payload.frequency)

    with storage_guard(db, "create lease"):
        tenant = _require(db, Tenant, "Tenant", payload.tenant_id)
        prop = _require(db, Property, "Property", payload.property_id)

    schedule = generate_schedule(terms)
    lease = Lease(
        tenant_id=tenant.id,
        property_id=prop.id,
        start_date=terms.start_date,
        duration_years=terms.duration_years,
        annual_rent=terms.annual_rent,
        frequency=terms.frequency.value,
    )
    save_lease_with_installments(db, lease, schedule, deadline=deadline)
    logger.info("Lease %s created for tenant %s with %d %s installments",
                lease.id, tenant.id, len(schedule), terms.frequency.value)

    if notifier is not None:
        notifier.notify_new_lease(tenant.email, tenant.full_name, prop.address)

    with storage_guard(db, "load lease"):
        return to_lease_out(find_lease_by_id(db, lease.id, include_relations=True))


# ----------------------------------------------------
# Reads
# ----------------------------------------------------
def get_lease(db: Session, user: UserToken, lease_id: UUID) -> LeaseOut:
    with storage_guard(db, "get lease"):
        lease = find_lease_by_id(db, lease_id, include_relations=True)
        if lease is None:
            logger.warning("Lease %s not found", lease_id)
            raise EntityNotFound("Lease", lease_id)
        ownership.ensure_access(db, user, lease.tenant_id, "Lease", lease_id)
        logger.debug("Lease %s read by %s", lease_id, user.user_id)
        return to_lease_out(lease)


def list_leases(db: Session, user: UserToken, params: LeaseRequest) -> dict:
    filters = ownership.lease_scope(user)
    if params.tenant_id:
        filters.append(Lease.tenant_id == params.tenant_id)
    if params.property_id:
        filters.append(Lease.property_id == params.property_id)

    with storage_guard(db, "list leases"):
        base = db.query(Lease).filter(*filters)
        total = base.count()
        rows = (
            base.options(
                selectinload(Lease.installments),
                selectinload(Lease.tenant),
                selectinload(Lease.property),
            )
            .order_by(Lease.start_date.desc(), Lease.id)
            .offset(params.skip)
            .limit(params.limit)
            .all()
        )
        return {"leases": [to_lease_out(row) for row in rows], "total": total}


def list_my_leases(db: Session, user: UserToken) -> List[LeaseOut]:
    with storage_guard(db, "list my leases"):
        rows = (
            db.query(Lease)
            .options(selectinload(Lease.installments))
            .filter(Lease.tenant.has(Tenant.user_id == user.user_id))
            .order_by(Lease.start_date, Lease.id)
            .all()
        )
        return [to_lease_out(row) for row in rows]


def list_leases_for_tenant(db: Session, user: UserToken, tenant_id: UUID) -> List[LeaseOut]:
    with storage_guard(db, "list tenant leases"):
        _require(db, Tenant, "Tenant", tenant_id)
        ownership.ensure_access(db, user, tenant_id, "Tenant", tenant_id)
        return [to_lease_out(row) for row in find_leases_by_tenant_id(db, tenant_id)]


def list_leases_for_owner_email(db: Session, user: UserToken, email: str) -> List[LeaseOut]:
    ownership.ensure_elevated(user, "look up leases by owner email")
    with storage_guard(db, "list leases by owner email"):
        return [to_lease_out(row) for row in find_leases_by_owner_email(db, email)]


def leases_with_unpaid_installments(db: Session, user: UserToken,
                                    min_unpaid: Optional[int] = None) -> List[LeaseUnpaidOut]:
    """Leases having at least ``min_unpaid`` unpaid installments, read in one statement."""
    threshold = settings.UNPAID_ALERT_THRESHOLD if min_unpaid is None else min_unpaid
    unpaid = (
        select(func.count(Installment.id))
        .where(
            Installment.lease_id == Lease.id,
            Installment.paid == PaidMarker.UNPAID.value,
        )
        .correlate(Lease)
        .scalar_subquery()
    )

    with storage_guard(db, "list leases with unpaid installments"):
        rows = (
            db.query(Lease, unpaid.label("unpaid"))
            .options(joinedload(Lease.tenant), joinedload(Lease.property))
            .filter(*ownership.lease_scope(user), unpaid >= threshold)
            .order_by(unpaid.desc(), Lease.start_date)
            .all()
        )
        return [
            LeaseUnpaidOut(
                lease_id=lease.id,
                tenant_id=lease.tenant_id,
                tenant_name=lease.tenant.full_name if lease.tenant else None,
                property_address=lease.property.address if lease.property else None,
                unpaid=count,
            )
            for lease, count in rows
        ]


# ----------------------------------------------------
# Update / delete
# ----------------------------------------------------
def update_lease(db: Session, user: UserToken, lease_id: UUID, payload: LeaseUpdate,
                 deadline: Optional[datetime] = None) -> LeaseOut:
    ownership.ensure_elevated(user, "update leases")
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    with ledger_transaction(db, "update lease", deadline, kind="Lease", entity_id=lease_id):
        lease = find_lease_by_id(db, lease_id, include_relations=True)
        if lease is None:
            raise EntityNotFound("Lease", lease_id)

        if "tenant_id" in data:
            _require(db, Tenant, "Tenant", data["tenant_id"])
        if "property_id" in data:
            _require(db, Property, "Property", data["property_id"])

        terms_changed = any(
            f in data and data[f] != getattr(lease, f) for f in TERM_FIELDS)
        if terms_changed:
            merged = {f: data.get(f, getattr(lease, f)) for f in TERM_FIELDS}
            terms = validate_terms(**merged)
            data.update(annual_rent=terms.annual_rent,
                        frequency=terms.frequency.value)

        for k, v in data.items():
            setattr(lease, k, v)

    if terms_changed:
        # existing installments keep their original amounts and dates
        logger.warning(
            "Lease %s terms changed; its %d installments were not regenerated",
            lease_id, len(lease.installments))
    logger.info("Lease %s updated by %s: %s", lease_id,
                user.user_id, sorted(data.keys()))

    with storage_guard(db, "load lease"):
        db.refresh(lease)
        return to_lease_out(lease)


def delete_lease(db: Session, user: UserToken, lease_id: UUID,
                 deadline: Optional[datetime] = None) -> dict:
    ownership.ensure_admin(user, "delete leases")
    with ledger_transaction(db, "delete lease", deadline, kind="Lease", entity_id=lease_id):
        lease = find_lease_by_id(db, lease_id)
        if lease is None:
            raise EntityNotFound("Lease", lease_id)
        removed = delete_lease_cascade(db, lease)

    logger.info("Lease %s deleted with %d installments", lease_id, removed)
    return {"id": lease_id, "installments_deleted": removed}
