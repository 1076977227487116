from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_db
from shared.core.schemas import UserToken
from shared.helpers.deadline_helper import request_deadline

from ....util.notification_service import LeaseNotifier
from ...crud.leasing import installments_crud as crud
from ...schemas.leasing.installments_schemas import (
    InstallmentCreate, InstallmentOut, PaymentStateUpdate, UnpaidCountOut
)

router = APIRouter(
    prefix="/api/installments",
    tags=["installments"],
    dependencies=[Depends(validate_current_token)]
)


@router.get("/unpaid", response_model=List[InstallmentOut])
def get_unpaid(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_unpaid(db, current_user)


@router.get("/overdue", response_model=List[InstallmentOut])
def get_overdue_unpaid(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_overdue_unpaid(db, current_user, as_of)


@router.get("/my", response_model=List[InstallmentOut])
def get_my_installments(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_my_installments(db, current_user)


@router.get("/by-marker/{marker}", response_model=List[InstallmentOut])
def get_by_paid_marker(
    marker: str,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_by_paid_marker(db, current_user, marker)


@router.get("/lease/{lease_id}", response_model=List[InstallmentOut])
def get_lease_installments(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.list_installments_for_lease(db, current_user, lease_id)


@router.get("/lease/{lease_id}/unpaid-count", response_model=UnpaidCountOut)
def get_unpaid_count(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return {"lease_id": lease_id, "unpaid": crud.count_unpaid_per_lease(db, current_user, lease_id)}


@router.get("/{installment_id}", response_model=InstallmentOut)
def get_installment(
    installment_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.get_installment(db, current_user, installment_id)


@router.post("/", response_model=InstallmentOut, status_code=201)
def create_installment(
    payload: InstallmentCreate,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    return crud.create_installment(db, current_user, payload, deadline=deadline)


@router.put("/{installment_id}/paid", response_model=InstallmentOut)
def mark_paid(
    installment_id: UUID,
    payload: PaymentStateUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    deadline: Optional[datetime] = Depends(request_deadline),
    current_user: UserToken = Depends(validate_current_token)
):
    notifier = LeaseNotifier(submit=background_tasks.add_task)
    return crud.mark_paid(db, current_user, installment_id, payload.paid,
                          notifier=notifier, deadline=deadline)
