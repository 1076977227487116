import uuid
from sqlalchemy import Column, String, Date, Integer, Numeric, ForeignKey, DateTime, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ...enum.leasing_enum import PaymentFrequency


class Lease(Base):
    __tablename__ = "leases"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey(
        "tenants.id"), nullable=False, index=True)
    property_id = Column(Uuid(as_uuid=True), ForeignKey(
        "properties.id"), nullable=False, index=True)

    start_date = Column(Date, nullable=False)
    duration_years = Column(Integer, nullable=False)
    annual_rent = Column(Numeric(14, 2), nullable=False)
    frequency = Column(String(16), nullable=False,
                       default=PaymentFrequency.QUARTERLY.value)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # relationships
    tenant = relationship("Tenant", back_populates="leases")
    property = relationship("Property", back_populates="leases")
    installments = relationship(
        "Installment", back_populates="lease", order_by="Installment.number",
        passive_deletes=True)
