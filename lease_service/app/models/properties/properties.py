import uuid
from sqlalchemy import JSON, Column, DateTime, Numeric, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class Property(Base):
    """Apartment, shop or office; type-specific fields live in ``attributes``."""
    __tablename__ = "properties"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    area_sqm = Column(Numeric(10, 2), nullable=False)
    property_type = Column(String(16), nullable=False)
    attributes = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    leases = relationship("Lease", back_populates="property")
    maintenance_charges = relationship(
        "MaintenanceCharge", back_populates="property")
