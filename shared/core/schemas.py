from pydantic import BaseModel
from typing import Generic, List, Optional, TypeVar
from uuid import UUID

from shared.utils.enums import UserRole

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: UUID
    email: Optional[str] = None
    name: Optional[str] = None
    roles: List[UserRole] = []
    exp: Optional[int] = None

    def has_role(self, *roles: UserRole) -> bool:
        return any(role in self.roles for role in roles)


class CommonQueryParams(BaseModel):
    skip: Optional[int] = 0
    limit: Optional[int] = 100


class JsonOutResult(BaseModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
