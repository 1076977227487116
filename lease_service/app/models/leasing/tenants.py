# app/models/leasing/tenants.py
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # one-to-one with the login identity: root of the ownership chain
    user_id = Column(Uuid(as_uuid=True), ForeignKey(
        "users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    tax_code = Column(String(32), unique=True, nullable=False)
    address = Column(String(255))
    phone = Column(String(32))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="tenant")
    leases = relationship("Lease", back_populates="tenant")
    maintenance_charges = relationship(
        "MaintenanceCharge", back_populates="tenant")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def email(self):
        return self.user.email if self.user else None
