# app/router/leasing/tenants_router.py
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import allow_roles, validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.utils.enums import ELEVATED_ROLES

from ...crud.leasing import tenants_crud as crud
from ...schemas.leasing.tenants_schemas import (
    TenantCreate, TenantListResponse, TenantOut, TenantRequest
)

router = APIRouter(
    prefix="/api/tenants",
    tags=["tenants"],
    dependencies=[Depends(validate_current_token)],
)


@router.get("/all", response_model=TenantListResponse)
def tenants_all(
    params: TenantRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_tenants(db, current_user, params)


@router.get("/me", response_model=TenantOut)
def my_tenant(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_my_tenant(db, current_user)


@router.get("/long-leases", response_model=List[TenantOut])
def tenants_with_long_leases(
    min_years: int = Query(2, ge=0),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_tenants_with_long_leases(db, current_user, min_years)


@router.get("/{tenant_id}", response_model=TenantOut)
def get_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_tenant(db, current_user, tenant_id)


@router.post("/", response_model=TenantOut, status_code=201)
def create_tenant(
    payload: TenantCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_roles(*ELEVATED_ROLES))
):
    return crud.create_tenant(db, current_user, payload)
