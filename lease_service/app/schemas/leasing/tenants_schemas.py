from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, model_validator

from shared.core.schemas import CommonQueryParams


class TenantBase(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    tax_code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None


class TenantCreate(TenantBase):
    # bind to an existing login, or to the one registered for ``email``
    user_id: Optional[UUID] = None
    email: Optional[EmailStr] = None
    first_name: str
    last_name: str
    tax_code: str

    @model_validator(mode="after")
    def check_identity(self):
        if self.user_id is None and self.email is None:
            raise ValueError("either user_id or email is required")
        return self


class TenantOut(TenantBase):
    id: UUID
    user_id: UUID
    email: Optional[EmailStr] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TenantRequest(CommonQueryParams):
    search: Optional[str] = None


class TenantListResponse(BaseModel):
    tenants: List[TenantOut]
    total: int
