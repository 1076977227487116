import uuid
from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base

from ...enum.leasing_enum import MaintenanceCategory


class MaintenanceCharge(Base):
    __tablename__ = "maintenance_charges"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid(as_uuid=True), ForeignKey(
        "properties.id"), nullable=False, index=True)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey(
        "tenants.id"), nullable=False, index=True)
    charge_date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(String(16), nullable=False,
                      default=MaintenanceCategory.EXTRAORDINARY.value)
    note = Column(Text)

    property = relationship("Property", back_populates="maintenance_charges")
    tenant = relationship("Tenant", back_populates="maintenance_charges")
