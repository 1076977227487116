from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ...enum.leasing_enum import MaintenanceCategory


class MaintenanceChargeBase(BaseModel):
    property_id: Optional[UUID] = None
    tenant_id: Optional[UUID] = None
    charge_date: Optional[date] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[MaintenanceCategory] = None
    note: Optional[str] = None


class MaintenanceChargeCreate(MaintenanceChargeBase):
    property_id: UUID
    tenant_id: UUID
    charge_date: date
    amount: Decimal = Field(gt=0)
    category: MaintenanceCategory = MaintenanceCategory.EXTRAORDINARY


class MaintenanceChargeUpdate(MaintenanceChargeBase):
    pass


class MaintenanceChargeOut(MaintenanceChargeBase):
    id: UUID
    property_id: UUID
    tenant_id: UUID
    charge_date: date
    amount: Decimal
    category: MaintenanceCategory

    model_config = {"from_attributes": True}


class MaintenanceChargeListResponse(BaseModel):
    charges: List[MaintenanceChargeOut]
    total: int


class MaintenanceTotalsResponse(BaseModel):
    # {year: {city: total}}
    totals: Dict[str, Dict[str, Decimal]]
