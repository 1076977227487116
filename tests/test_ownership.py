"""
Tests for the ownership resolver shared by leases, installments and
maintenance charges.
"""

from uuid import uuid4

import pytest

from shared.core.exceptions import AccessDenied
from shared.core.schemas import UserToken
from shared.utils.enums import UserRole
from lease_service.app.crud.leasing import leases_crud, ownership
from lease_service.app.models.leasing.installments import Installment
from lease_service.app.models.leasing.leases import Lease
from lease_service.app.schemas.leasing.leases_schemas import LeaseRequest


class TestCanAccess:

    def test_elevated_roles_see_everything(self, db, seed, admin_user, manager_user):
        assert ownership.can_access(db, admin_user, seed.alice.id)
        assert ownership.can_access(db, manager_user, seed.bob.id)

    def test_tenant_sees_only_own(self, db, seed, alice_user):
        assert ownership.can_access(db, alice_user, seed.alice.id)
        assert not ownership.can_access(db, alice_user, seed.bob.id)

    def test_login_without_tenant_sees_nothing(self, db, seed):
        staff = UserToken(user_id=seed.staff_login.id, roles=[UserRole.TENANT])
        assert ownership.resolve_caller_tenant_id(db, staff) is None
        assert not ownership.can_access(db, staff, seed.alice.id)

    def test_no_roles_sees_nothing(self, db, seed):
        nobody = UserToken(user_id=seed.alice_login.id, roles=[])
        assert not ownership.can_access(db, nobody, seed.alice.id)

    def test_roles_are_a_union(self, db, seed):
        both = UserToken(user_id=seed.alice_login.id, roles=[UserRole.TENANT, UserRole.MANAGER])
        assert ownership.can_access(db, both, seed.bob.id)

    def test_ensure_access_reports_target(self, db, seed, bob_user):
        with pytest.raises(AccessDenied) as exc_info:
            ownership.ensure_access(db, bob_user, seed.alice.id, "Lease", "lease-1")
        assert exc_info.value.kind == "Lease"
        assert exc_info.value.entity_id == "lease-1"
        assert exc_info.value.code == "ACCESS_DENIED"


class TestRoleChecks:

    def test_admin_only(self, admin_user, manager_user):
        ownership.ensure_admin(admin_user, "delete")
        with pytest.raises(AccessDenied):
            ownership.ensure_admin(manager_user, "delete")

    def test_elevated(self, manager_user, alice_user):
        ownership.ensure_elevated(manager_user, "write")
        with pytest.raises(AccessDenied):
            ownership.ensure_elevated(alice_user, "write")


class TestScopeFilters:

    def test_elevated_gets_no_filter(self, admin_user):
        assert ownership.lease_scope(admin_user) == []
        assert ownership.installment_scope(admin_user) == []
        assert ownership.maintenance_scope(admin_user) == []

    def test_tenant_filter_is_pushed_into_sql(self, db, alice_user):
        query = db.query(Installment).filter(*ownership.installment_scope(alice_user))
        sql = str(query.statement.compile(compile_kwargs={"literal_binds": False}))
        assert "EXISTS" in sql
        assert "tenants.user_id" in sql

    def test_caller_without_role_is_refused(self, db, seed):
        nobody = UserToken(user_id=uuid4(), roles=[])
        with pytest.raises(AccessDenied):
            ownership.lease_scope(nobody)
        with pytest.raises(AccessDenied):
            leases_crud.list_leases(db, nobody, LeaseRequest())

    def test_tenant_filter_selects_only_owner_rows(self, db, seed, make_lease, alice_user):
        make_lease()
        make_lease(tenant=seed.bob, prop=seed.shop)

        leases = db.query(Lease).filter(*ownership.lease_scope(alice_user)).all()
        assert [l.tenant_id for l in leases] == [seed.alice.id]

        installments = db.query(Installment).filter(*ownership.installment_scope(alice_user)).all()
        assert len(installments) == 4
        assert {i.lease_id for i in installments} == {leases[0].id}

    def test_owner_email_filter(self, db, seed, make_lease):
        make_lease()
        rows = db.query(Lease).filter(ownership.lease_owner_email_filter("alice@example.com")).all()
        assert len(rows) == 1
