from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import allow_roles, validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.deadline_helper import request_deadline
from shared.utils.enums import UserRole

from ....util.notification_service import LeaseNotifier
from ...crud.leasing import leases_crud as crud
from ...schemas.leasing.leases_schemas import (
    LeaseCreate, LeaseListResponse, LeaseOut, LeaseRequest, LeaseUnpaidOut, LeaseUpdate
)

router = APIRouter(
    prefix="/api/leases",
    tags=["leases"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/all", response_model=LeaseListResponse)
def get_leases(
    params: LeaseRequest = Depends(),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_leases(db, current_user, params)


@router.get("/my", response_model=List[LeaseOut])
def get_my_leases(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_my_leases(db, current_user)


@router.get("/unpaid-alerts", response_model=List[LeaseUnpaidOut])
def get_leases_with_unpaid_installments(
    min_unpaid: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.leases_with_unpaid_installments(db, current_user, min_unpaid)


@router.get("/by-tenant/{tenant_id}", response_model=List[LeaseOut])
def get_leases_by_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_leases_for_tenant(db, current_user, tenant_id)


@router.get("/by-owner-email", response_model=List[LeaseOut])
def get_leases_by_owner_email(
    email: str = Query(...),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_leases_for_owner_email(db, current_user, email)


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_lease(db, current_user, lease_id)


@router.post("/", response_model=LeaseOut, status_code=201)
def create_lease(
    payload: LeaseCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    notifier = LeaseNotifier(submit=background_tasks.add_task)
    return crud.create_lease(db, current_user, payload, notifier=notifier, deadline=deadline)


@router.put("/{lease_id}", response_model=LeaseOut)
def update_lease(
    lease_id: UUID,
    payload: LeaseUpdate,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.update_lease(db, current_user, lease_id, payload, deadline=deadline)


@router.delete("/{lease_id}", response_model=None)
def delete_lease(
    lease_id: UUID,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(allow_roles(UserRole.ADMIN))
):
    return crud.delete_lease(db, current_user, lease_id, deadline=deadline)
