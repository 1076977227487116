from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import allow_roles, validate_current_token
from shared.core.database import get_db
from shared.core.schemas import CommonQueryParams, UserToken
from shared.helpers.deadline_helper import request_deadline
from shared.utils.enums import UserRole

from ...crud.maintenance import maintenance_charges_crud as crud
from ...schemas.maintenance.maintenance_charges_schemas import (
    MaintenanceChargeCreate, MaintenanceChargeListResponse, MaintenanceChargeOut,
    MaintenanceChargeUpdate, MaintenanceTotalsResponse
)

router = APIRouter(
    prefix="/api/maintenance-charges",
    tags=["maintenance charges"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=MaintenanceChargeListResponse)
def get_charges(
    params: CommonQueryParams = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_charges(db, current_user, params)


@router.get("/totals", response_model=MaintenanceTotalsResponse)
def get_totals(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return {"totals": crud.totals_by_year_and_city(db, current_user)}


@router.get("/tenant/{tenant_id}/year/{year}", response_model=List[MaintenanceChargeOut])
def get_charges_by_year(
    tenant_id: UUID,
    year: int,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_by_tenant_and_year(db, current_user, tenant_id, year)


@router.get("/tenant/{tenant_id}/dates-above", response_model=List[date])
def get_dates_above_amount(
    tenant_id: UUID,
    min_amount: Decimal = Query(...),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_dates_above_amount(db, current_user, tenant_id, min_amount)


@router.get("/{charge_id}", response_model=MaintenanceChargeOut)
def get_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_charge(db, current_user, charge_id)


@router.post("/", response_model=MaintenanceChargeOut, status_code=201)
def create_charge(
    payload: MaintenanceChargeCreate,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.create_charge(db, current_user, payload, deadline=deadline)


@router.put("/{charge_id}", response_model=MaintenanceChargeOut)
def update_charge(
    charge_id: UUID,
    payload: MaintenanceChargeUpdate,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.update_charge(db, current_user, charge_id, payload, deadline=deadline)


@router.delete("/{charge_id}", response_model=None)
def delete_charge(
    charge_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_roles(UserRole.ADMIN))
):
    return crud.delete_charge(db, current_user, charge_id)
