import logging
from decimal import Decimal
from typing import Dict, Tuple
from uuid import UUID

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from shared.core.exceptions import EntityNotFound
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode

from ...enum.property_enum import PropertyType
from ...models.leasing.leases import Lease
from ...models.maintenance.maintenance_charges import MaintenanceCharge
from ...models.properties.properties import Property
from ...schemas.properties.properties_schemas import (
    ApartmentDetails, OfficeDetails, PropertyCreate, PropertyOut, PropertyRequest,
    PropertyUpdate, ShopDetails
)
from ..common.persistence import ledger_transaction, storage_guard
from ..leasing import ownership

logger = logging.getLogger(__name__)


# ----------------------------------------------------
# Variant mapping
# ----------------------------------------------------
def details_to_attributes(details) -> Tuple[PropertyType, dict]:
    match details:
        case ApartmentDetails(floor=floor, rooms=rooms):
            return PropertyType.APARTMENT, {"floor": floor, "rooms": rooms}
        case ShopDetails(shop_windows=windows, storage_sqm=storage):
            return PropertyType.SHOP, {"shop_windows": windows, "storage_sqm": str(storage)}
        case OfficeDetails(workstations=workstations, meeting_rooms=rooms):
            return PropertyType.OFFICE, {"workstations": workstations, "meeting_rooms": rooms}
        case _:
            return error_response(
                message=f"Unsupported property details: {type(details).__name__}",
                status_code=AppStatusCode.INVALID_INPUT,
            )


def attributes_to_details(property_type: str, attributes: dict):
    attributes = attributes or {}
    match PropertyType(property_type):
        case PropertyType.APARTMENT:
            return ApartmentDetails(**attributes)
        case PropertyType.SHOP:
            return ShopDetails(**{**attributes, "storage_sqm": Decimal(str(attributes.get("storage_sqm", 0)))})
        case PropertyType.OFFICE:
            return OfficeDetails(**attributes)


def to_property_out(prop: Property) -> PropertyOut:
    return PropertyOut(
        id=prop.id,
        address=prop.address,
        city=prop.city,
        area_sqm=prop.area_sqm,
        property_type=prop.property_type,
        details=attributes_to_details(prop.property_type, prop.attributes),
        created_at=prop.created_at,
    )


def _get_or_404(db: Session, property_id: UUID) -> Property:
    prop = db.get(Property, property_id)
    if prop is None:
        raise EntityNotFound("Property", property_id)
    return prop


# ----------------------------------------------------
# CRUD
# ----------------------------------------------------
def create_property(db: Session, user: UserToken, payload: PropertyCreate) -> PropertyOut:
    ownership.ensure_elevated(user, "create properties")
    property_type, attributes = details_to_attributes(payload.details)

    with ledger_transaction(db, "create property"):
        prop = Property(
            address=payload.address,
            city=payload.city,
            area_sqm=payload.area_sqm,
            property_type=property_type.value,
            attributes=attributes,
        )
        db.add(prop)
        db.flush()

    logger.info("Property %s (%s) created in %s", prop.id, property_type.value, prop.city)
    return to_property_out(prop)


def get_property(db: Session, property_id: UUID) -> PropertyOut:
    with storage_guard(db, "get property"):
        return to_property_out(_get_or_404(db, property_id))


def list_properties(db: Session, params: PropertyRequest) -> dict:
    q = db.query(Property)
    if params.city:
        q = q.filter(Property.city == params.city)
    if params.property_type and params.property_type.lower() != "all":
        q = q.filter(Property.property_type == params.property_type.upper())

    with storage_guard(db, "list properties"):
        total = q.count()
        rows = q.order_by(Property.city, Property.address).offset(
            params.skip).limit(params.limit).all()
        return {"properties": [to_property_out(p) for p in rows], "total": total}


def update_property(db: Session, user: UserToken, property_id: UUID, payload: PropertyUpdate) -> PropertyOut:
    ownership.ensure_elevated(user, "update properties")
    data = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"details"})

    with ledger_transaction(db, "update property", kind="Property", entity_id=property_id):
        prop = _get_or_404(db, property_id)
        for k, v in data.items():
            setattr(prop, k, v)
        if payload.details is not None:
            property_type, attributes = details_to_attributes(payload.details)
            prop.property_type = property_type.value
            prop.attributes = attributes

    logger.info("Property %s updated", property_id)
    return to_property_out(prop)


def delete_property(db: Session, user: UserToken, property_id: UUID) -> dict:
    ownership.ensure_admin(user, "delete properties")

    with ledger_transaction(db, "delete property", kind="Property", entity_id=property_id):
        prop = _get_or_404(db, property_id)
        if (db.query(Lease.id).filter(Lease.property_id == property_id).first()
                or db.query(MaintenanceCharge.id).filter(MaintenanceCharge.property_id == property_id).first()):
            return error_response(
                message="Property has leases or charges and cannot be deleted",
                status_code=AppStatusCode.OPERATION_FAILED,
            )
        db.delete(prop)

    logger.info("Property %s deleted", property_id)
    return {"id": property_id}


# ----------------------------------------------------
# Statistics
# ----------------------------------------------------
def count_by_type(db: Session) -> Dict[str, int]:
    with storage_guard(db, "count properties by type"):
        rows = (
            db.query(Property.property_type, func.count(Property.id))
            .group_by(Property.property_type)
            .all()
        )
    counts = {t.value: 0 for t in PropertyType}
    counts.update({property_type: count for property_type, count in rows})
    return counts


def count_rented_by_city(db: Session, user: UserToken) -> Dict[str, int]:
    """Properties with at least one lease, counted once per city."""
    ownership.ensure_elevated(user, "read rental statistics")

    with storage_guard(db, "count rented properties by city"):
        rows = (
            db.query(Property.city, func.count(distinct(Property.id)))
            .join(Lease, Lease.property_id == Property.id)
            .group_by(Property.city)
            .order_by(Property.city)
            .all()
        )
    return {city: count for city, count in rows}
