from typing import Dict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_roles, validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.utils.enums import ELEVATED_ROLES, UserRole

from ...crud.properties import properties_crud as crud
from ...schemas.properties.properties_schemas import (
    PropertyCreate, PropertyListResponse, PropertyOut, PropertyRequest, PropertyUpdate
)

router = APIRouter(
    prefix="/api/properties",
    tags=["properties"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=PropertyListResponse)
def get_properties(
    params: PropertyRequest = Depends(),
    db: Session = Depends(get_db)
):
    return crud.list_properties(db, params)


@router.get("/stats/by-type", response_model=Dict[str, int])
def properties_by_type(db: Session = Depends(get_db)):
    return crud.count_by_type(db)


@router.get("/stats/rented-by-city", response_model=Dict[str, int])
def rented_properties_by_city(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_roles(*ELEVATED_ROLES))
):
    return crud.count_rented_by_city(db, current_user)


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: UUID, db: Session = Depends(get_db)):
    return crud.get_property(db, property_id)


@router.post("/", response_model=PropertyOut, status_code=201)
def create_property(
    payload: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.create_property(db, current_user, payload)


@router.put("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: UUID,
    payload: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.update_property(db, current_user, property_id, payload)


@router.delete("/{property_id}", response_model=None)
def delete_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_roles(UserRole.ADMIN))
):
    return crud.delete_property(db, current_user, property_id)
