import uuid
from sqlalchemy import CHAR, Column, Date, Integer, Numeric, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from shared.core.database import Base

from ...enum.leasing_enum import PaidMarker


class Installment(Base):
    __tablename__ = "installments"
    __table_args__ = (
        UniqueConstraint("lease_id", "number", name="uq_installment_lease_number"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lease_id = Column(Uuid(as_uuid=True), ForeignKey(
        "leases.id", ondelete="CASCADE"), nullable=False, index=True)
    number = Column(Integer, nullable=False)  # 1-based within the lease
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    paid = Column(CHAR(1), nullable=False, default=PaidMarker.UNPAID.value)
    version = Column(Integer, nullable=False, default=1)

    lease = relationship("Lease", back_populates="installments")

    __mapper_args__ = {"version_id_col": version}

    @property
    def paid_marker(self) -> PaidMarker:
        return PaidMarker(self.paid)

    @property
    def is_paid(self) -> bool:
        return self.paid == PaidMarker.PAID.value
