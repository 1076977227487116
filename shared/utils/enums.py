from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    TENANT = "TENANT"


# Roles allowed to create and change financial records
ELEVATED_ROLES = frozenset({UserRole.ADMIN, UserRole.MANAGER})

# Roles allowed to delete records
DESTRUCTIVE_ROLES = frozenset({UserRole.ADMIN})


class UserStatus(str, Enum):
    active = "active"
    inactive = "inactive"
