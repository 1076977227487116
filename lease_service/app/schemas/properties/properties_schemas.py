from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams


class ApartmentDetails(BaseModel):
    property_type: Literal["APARTMENT"] = "APARTMENT"
    floor: int
    rooms: int = Field(ge=1)


class ShopDetails(BaseModel):
    property_type: Literal["SHOP"] = "SHOP"
    shop_windows: int = Field(ge=0)
    storage_sqm: Decimal = Field(ge=0)


class OfficeDetails(BaseModel):
    property_type: Literal["OFFICE"] = "OFFICE"
    workstations: int = Field(ge=0)
    meeting_rooms: int = Field(ge=0)


PropertyDetails = Annotated[
    Union[ApartmentDetails, ShopDetails, OfficeDetails],
    Field(discriminator="property_type"),
]


class PropertyBase(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    area_sqm: Optional[Decimal] = None


class PropertyCreate(PropertyBase):
    address: str
    city: str
    area_sqm: Decimal = Field(gt=0)
    details: PropertyDetails


class PropertyUpdate(PropertyBase):
    details: Optional[PropertyDetails] = None


class PropertyOut(PropertyBase):
    id: UUID
    property_type: str
    details: PropertyDetails
    created_at: Optional[datetime] = None


class PropertyListResponse(BaseModel):
    properties: List[PropertyOut]
    total: int


class PropertyRequest(CommonQueryParams):
    city: Optional[str] = None
    property_type: Optional[str] = None
