import logging
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from shared.core.exceptions import EntityNotFound
from shared.core.schemas import CommonQueryParams, UserToken

from ...models.leasing.tenants import Tenant
from ...models.maintenance.maintenance_charges import MaintenanceCharge
from ...models.properties.properties import Property
from ...schemas.maintenance.maintenance_charges_schemas import (
    MaintenanceChargeCreate, MaintenanceChargeOut, MaintenanceChargeUpdate
)
from ..common.persistence import ledger_transaction, storage_guard
from ..leasing import ownership

logger = logging.getLogger(__name__)


def _scoped(db: Session, user: UserToken):
    return db.query(MaintenanceCharge).filter(*ownership.maintenance_scope(user))


def _require(db: Session, model, kind: str, entity_id):
    obj = db.get(model, entity_id)
    if obj is None:
        raise EntityNotFound(kind, entity_id)
    return obj


def _get_charge(db: Session, user: UserToken, charge_id: UUID) -> MaintenanceCharge:
    charge = db.get(MaintenanceCharge, charge_id)
    if charge is None:
        logger.warning("Maintenance charge %s not found", charge_id)
        raise EntityNotFound("MaintenanceCharge", charge_id)
    ownership.ensure_access(db, user, charge.tenant_id, "MaintenanceCharge", charge_id)
    return charge


# ----------------------------------------------------
# CRUD
# ----------------------------------------------------
def create_charge(db: Session, user: UserToken, payload: MaintenanceChargeCreate,
                  deadline: Optional[datetime] = None) -> MaintenanceChargeOut:
    ownership.ensure_elevated(user, "record maintenance charges")

    with ledger_transaction(db, "create maintenance charge", deadline):
        _require(db, Property, "Property", payload.property_id)
        _require(db, Tenant, "Tenant", payload.tenant_id)
        charge = MaintenanceCharge(**payload.model_dump())
        charge.category = payload.category.value
        db.add(charge)
        db.flush()

    logger.info("Maintenance charge %s of %s recorded for tenant %s",
                charge.id, charge.amount, charge.tenant_id)
    return MaintenanceChargeOut.model_validate(charge)


def get_charge(db: Session, user: UserToken, charge_id: UUID) -> MaintenanceChargeOut:
    with storage_guard(db, "get maintenance charge"):
        return MaintenanceChargeOut.model_validate(_get_charge(db, user, charge_id))


def list_charges(db: Session, user: UserToken, params: CommonQueryParams) -> dict:
    with storage_guard(db, "list maintenance charges"):
        q = _scoped(db, user)
        total = q.count()
        rows = (
            q.order_by(MaintenanceCharge.charge_date.desc(), MaintenanceCharge.id)
            .offset(params.skip)
            .limit(params.limit)
            .all()
        )
        return {"charges": [MaintenanceChargeOut.model_validate(c) for c in rows], "total": total}


def update_charge(db: Session, user: UserToken, charge_id: UUID, payload: MaintenanceChargeUpdate,
                  deadline: Optional[datetime] = None) -> MaintenanceChargeOut:
    ownership.ensure_elevated(user, "update maintenance charges")
    data = payload.model_dump(exclude_unset=True, exclude_none=True)

    with ledger_transaction(db, "update maintenance charge", deadline,
                            kind="MaintenanceCharge", entity_id=charge_id):
        charge = _get_charge(db, user, charge_id)
        if "property_id" in data:
            _require(db, Property, "Property", data["property_id"])
        if "tenant_id" in data:
            _require(db, Tenant, "Tenant", data["tenant_id"])
        if "category" in data:
            data["category"] = data["category"].value
        for k, v in data.items():
            setattr(charge, k, v)

    logger.info("Maintenance charge %s updated: %s", charge_id, sorted(data.keys()))
    return MaintenanceChargeOut.model_validate(charge)


def delete_charge(db: Session, user: UserToken, charge_id: UUID) -> dict:
    ownership.ensure_admin(user, "delete maintenance charges")

    with ledger_transaction(db, "delete maintenance charge",
                            kind="MaintenanceCharge", entity_id=charge_id):
        charge = _get_charge(db, user, charge_id)
        db.delete(charge)

    logger.info("Maintenance charge %s deleted", charge_id)
    return {"id": charge_id}


# ----------------------------------------------------
# Queries
# ----------------------------------------------------
def list_by_tenant_and_year(db: Session, user: UserToken, tenant_id: UUID, year: int) -> List[MaintenanceChargeOut]:
    with storage_guard(db, "list charges by year"):
        _require(db, Tenant, "Tenant", tenant_id)
        ownership.ensure_access(db, user, tenant_id, "Tenant", tenant_id)
        rows = (
            _scoped(db, user)
            .filter(
                MaintenanceCharge.tenant_id == tenant_id,
                extract("year", MaintenanceCharge.charge_date) == year,
            )
            .order_by(MaintenanceCharge.charge_date)
            .all()
        )
        return [MaintenanceChargeOut.model_validate(c) for c in rows]


def list_dates_above_amount(db: Session, user: UserToken, tenant_id: UUID, min_amount: Decimal) -> List[date]:
    """Dates of the tenant's charges strictly above ``min_amount``, oldest first."""
    with storage_guard(db, "list charge dates"):
        _require(db, Tenant, "Tenant", tenant_id)
        ownership.ensure_access(db, user, tenant_id, "Tenant", tenant_id)
        rows = (
            _scoped(db, user)
            .with_entities(MaintenanceCharge.charge_date)
            .filter(
                MaintenanceCharge.tenant_id == tenant_id,
                MaintenanceCharge.amount > min_amount,
            )
            .order_by(MaintenanceCharge.charge_date)
            .all()
        )
        return [row.charge_date for row in rows]


def totals_by_year_and_city(db: Session, user: UserToken) -> Dict[str, Dict[str, Decimal]]:
    ownership.ensure_elevated(user, "read maintenance totals")
    year = extract("year", MaintenanceCharge.charge_date)

    with storage_guard(db, "maintenance totals"):
        rows = (
            db.query(year.label("year"), Property.city,
                     func.sum(MaintenanceCharge.amount).label("total"))
            .join(Property, Property.id == MaintenanceCharge.property_id)
            .group_by(year, Property.city)
            .order_by(year, Property.city)
            .all()
        )

    totals = defaultdict(dict)
    for row in rows:
        totals[str(int(row.year))][row.city] = Decimal(str(row.total)).quantize(Decimal("0.01"))
    return dict(totals)
