# app/crud/leasing/tenants_crud.py
import logging
from typing import List
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from shared.core.exceptions import EntityNotFound
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.helpers.user_helper import get_or_create_user
from shared.models.users import User
from shared.utils.app_status_code import AppStatusCode

from ...models.leasing.leases import Lease
from ...models.leasing.tenants import Tenant
from ...schemas.leasing.tenants_schemas import TenantCreate, TenantOut, TenantRequest
from ..common.persistence import ledger_transaction, storage_guard
from . import ownership

logger = logging.getLogger(__name__)


# ----------------------------------------------------
# Create tenant bound to a login identity
# ----------------------------------------------------
def create_tenant(db: Session, user: UserToken, payload: TenantCreate) -> TenantOut:
    ownership.ensure_elevated(user, "create tenants")

    with ledger_transaction(db, "create tenant"):
        if payload.user_id is not None:
            login = db.get(User, payload.user_id)
            if login is None:
                raise EntityNotFound("User", payload.user_id)
        else:
            login = get_or_create_user(
                db, payload.email, f"{payload.first_name} {payload.last_name}")

        if db.query(Tenant.id).filter(Tenant.user_id == login.id).first():
            return error_response(
                message="This user is already bound to a tenant",
                status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            )
        if db.query(Tenant.id).filter(Tenant.tax_code == payload.tax_code).first():
            return error_response(
                message=f"Tax code {payload.tax_code} already registered",
                status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            )

        tenant = Tenant(
            user_id=login.id,
            **payload.model_dump(exclude={"user_id", "email"}),
        )
        tenant.user = login
        db.add(tenant)
        db.flush()

    logger.info("Tenant %s created for user %s", tenant.id, login.id)
    return TenantOut.model_validate(tenant)


# ----------------------------------------------------
# Reads
# ----------------------------------------------------
def get_tenant(db: Session, user: UserToken, tenant_id: UUID) -> TenantOut:
    with storage_guard(db, "get tenant"):
        tenant = db.get(Tenant, tenant_id)
        if tenant is None:
            raise EntityNotFound("Tenant", tenant_id)
        ownership.ensure_access(db, user, tenant.id, "Tenant", tenant_id)
        return TenantOut.model_validate(tenant)


def get_my_tenant(db: Session, user: UserToken) -> TenantOut:
    with storage_guard(db, "get my tenant"):
        tenant = db.query(Tenant).filter(Tenant.user_id == user.user_id).first()
        if tenant is None:
            raise EntityNotFound("Tenant", user.user_id)
        return TenantOut.model_validate(tenant)


def list_tenants(db: Session, user: UserToken, params: TenantRequest) -> dict:
    q = db.query(Tenant)
    if not ownership.is_elevated(user):
        q = q.filter(Tenant.user_id == user.user_id)
    if params.search:
        like = f"%{params.search}%"
        q = q.filter(or_(
            Tenant.first_name.ilike(like),
            Tenant.last_name.ilike(like),
            Tenant.tax_code.ilike(like),
        ))

    with storage_guard(db, "list tenants"):
        total = q.count()
        rows: List[Tenant] = (
            q.options(selectinload(Tenant.user))
            .order_by(Tenant.last_name, Tenant.first_name)
            .offset(params.skip)
            .limit(params.limit)
            .all()
        )
        return {"tenants": [TenantOut.model_validate(t) for t in rows], "total": total}


def list_tenants_with_long_leases(db: Session, user: UserToken, min_years: int = 2) -> List[TenantOut]:
    """Tenants holding at least one lease longer than ``min_years`` years."""
    q = db.query(Tenant).filter(Tenant.leases.any(Lease.duration_years > min_years))
    if not ownership.is_elevated(user):
        q = q.filter(Tenant.user_id == user.user_id)

    with storage_guard(db, "list tenants with long leases"):
        rows = q.order_by(Tenant.last_name, Tenant.first_name).all()
        return [TenantOut.model_validate(t) for t in rows]
