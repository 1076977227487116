"""
Ownership scoping for financial records.

ADMIN and MANAGER see everything. A TENANT caller sees only the records
whose owning tenant is bound to its own user id:

    Lease             -> Tenant -> User
    Installment       -> Lease -> Tenant -> User
    MaintenanceCharge -> Tenant -> User

Collection filters are SQL expressions (EXISTS sub-selects built with
``relationship.has``) so the database does the narrowing.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import AccessDenied
from shared.core.schemas import UserToken
from shared.models.users import User
from shared.utils.enums import DESTRUCTIVE_ROLES, ELEVATED_ROLES, UserRole

from ...models.leasing.installments import Installment
from ...models.leasing.leases import Lease
from ...models.leasing.tenants import Tenant
from ...models.maintenance.maintenance_charges import MaintenanceCharge

logger = logging.getLogger(__name__)


# ----------------------------------------------------
# Role checks
# ----------------------------------------------------
def is_elevated(user: UserToken) -> bool:
    return user.has_role(*ELEVATED_ROLES)


def ensure_roles(user: UserToken, roles, action: str):
    if not user.has_role(*roles):
        logger.warning("user %s denied %s (roles=%s)",
                       user.user_id, action, [r.value for r in user.roles])
        raise AccessDenied(f"Role not allowed to {action}")


def ensure_elevated(user: UserToken, action: str):
    ensure_roles(user, ELEVATED_ROLES, action)


def ensure_admin(user: UserToken, action: str):
    ensure_roles(user, DESTRUCTIVE_ROLES, action)


# ----------------------------------------------------
# Single record checks
# ----------------------------------------------------
def resolve_caller_tenant_id(db: Session, user: UserToken) -> Optional[UUID]:
    return (
        db.query(Tenant.id)
        .filter(Tenant.user_id == user.user_id)
        .scalar()
    )


def can_access(db: Session, user: UserToken, owner_tenant_id) -> bool:
    if is_elevated(user):
        return True
    if not user.has_role(UserRole.TENANT):
        return False
    caller_tenant_id = resolve_caller_tenant_id(db, user)
    return caller_tenant_id is not None and caller_tenant_id == owner_tenant_id


def ensure_access(db: Session, user: UserToken, owner_tenant_id, kind: str, entity_id):
    """Raise AccessDenied unless ``user`` may see a ``kind`` owned by ``owner_tenant_id``."""
    if not can_access(db, user, owner_tenant_id):
        logger.warning("user %s denied access to %s %s",
                       user.user_id, kind, entity_id)
        raise AccessDenied(f"Access denied to {kind} {entity_id}",
                           kind=kind, entity_id=entity_id)


# ----------------------------------------------------
# Collection filters
# ----------------------------------------------------
def _tenant_owned_by(user: UserToken):
    return Tenant.user_id == user.user_id


def _check_reader(user: UserToken):
    if not (is_elevated(user) or user.has_role(UserRole.TENANT)):
        raise AccessDenied("No role allows reading ledger records")


def lease_scope(user: UserToken) -> List:
    _check_reader(user)
    if is_elevated(user):
        return []
    return [Lease.tenant.has(_tenant_owned_by(user))]


def installment_scope(user: UserToken) -> List:
    _check_reader(user)
    if is_elevated(user):
        return []
    return [Installment.lease.has(Lease.tenant.has(_tenant_owned_by(user)))]


def maintenance_scope(user: UserToken) -> List:
    _check_reader(user)
    if is_elevated(user):
        return []
    return [MaintenanceCharge.tenant.has(_tenant_owned_by(user))]


def lease_owner_email_filter(email: str):
    return Lease.tenant.has(Tenant.user.has(User.email == email))
