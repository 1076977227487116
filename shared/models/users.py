import uuid
from sqlalchemy import TIMESTAMP, Column, String, Uuid, func
from sqlalchemy.orm import relationship

from shared.core.database import Base


class User(Base):
    """Login identity. Credentials and roles live with the auth provider."""
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(200), unique=True, index=True, nullable=False)
    full_name = Column(String(200), nullable=False)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="user", uselist=False)
