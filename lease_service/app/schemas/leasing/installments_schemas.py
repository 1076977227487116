from datetime import date
from decimal import Decimal
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, model_validator

from ...enum.leasing_enum import PaidMarker


class InstallmentBase(BaseModel):
    number: Optional[int] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = None


class InstallmentCreate(InstallmentBase):
    lease_id: UUID
    number: int
    due_date: date
    amount: Decimal
    paid: Optional[Union[bool, str]] = False


class InstallmentOut(InstallmentBase):
    id: UUID
    lease_id: UUID
    number: int
    due_date: date
    amount: Decimal
    paid: bool
    paid_marker: str

    @model_validator(mode="before")
    @classmethod
    def render_paid_marker(cls, data):
        # rows store the marker literal; the API renders a boolean next to it
        if not isinstance(data, dict):
            data = {
                "id": data.id,
                "lease_id": data.lease_id,
                "number": data.number,
                "due_date": data.due_date,
                "amount": data.amount,
                "paid": data.paid,
            }
        marker = PaidMarker.from_value(
            data.get("paid_marker", data.get("paid")))
        return {**data, "paid": marker.is_paid, "paid_marker": marker.value}


class InstallmentListResponse(BaseModel):
    installments: List[InstallmentOut]
    total: int


class UnpaidCountOut(BaseModel):
    lease_id: UUID
    unpaid: int


class PaymentStateUpdate(BaseModel):
    # true/false, or the stored marker 'S'/'N'
    paid: Union[bool, str]
