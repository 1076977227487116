from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from .installments_schemas import InstallmentOut
from shared.core.schemas import CommonQueryParams


class LeaseBase(BaseModel):
    tenant_id: Optional[UUID] = None
    property_id: Optional[UUID] = None
    start_date: Optional[date] = None
    duration_years: Optional[int] = None
    annual_rent: Optional[Decimal] = None
    frequency: Optional[str] = None


class LeaseCreate(LeaseBase):
    tenant_id: UUID
    property_id: UUID
    start_date: date
    duration_years: int
    annual_rent: Decimal
    frequency: str = "QUARTERLY"


class LeaseUpdate(LeaseBase):
    pass


class LeaseOut(LeaseBase):
    id: UUID
    tenant_name: Optional[str] = None
    property_address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # False when rent, duration or frequency changed after the schedule was generated
    schedule_consistent: bool = True
    installments: List[InstallmentOut] = []


class LeaseRequest(CommonQueryParams):
    tenant_id: Optional[UUID] = None
    property_id: Optional[UUID] = None


class LeaseListResponse(BaseModel):
    leases: List[LeaseOut]
    total: int


class LeaseUnpaidOut(BaseModel):
    lease_id: UUID
    tenant_id: UUID
    tenant_name: Optional[str] = None
    property_address: Optional[str] = None
    unpaid: int
