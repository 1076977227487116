"""
Tests for the property and tenant records the ledger hangs off.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from shared.core.exceptions import AccessDenied, EntityNotFound
from shared.models.users import User
from lease_service.app.crud.leasing import tenants_crud
from lease_service.app.crud.properties import properties_crud
from lease_service.app.schemas.leasing.tenants_schemas import TenantCreate, TenantRequest
from lease_service.app.schemas.properties.properties_schemas import (
    ApartmentDetails,
    OfficeDetails,
    PropertyCreate,
    PropertyRequest,
    PropertyUpdate,
    ShopDetails,
)


class TestProperties:

    @pytest.mark.parametrize("details,expected_type", [
        ({"property_type": "APARTMENT", "floor": 1, "rooms": 4}, ApartmentDetails),
        ({"property_type": "SHOP", "shop_windows": 3, "storage_sqm": "12.5"}, ShopDetails),
        ({"property_type": "OFFICE", "workstations": 8, "meeting_rooms": 1}, OfficeDetails),
    ])
    def test_create_each_variant(self, db, seed, manager_user, details, expected_type):
        out = properties_crud.create_property(db, manager_user, PropertyCreate(
            address="Via Verdi 3", city="Bologna", area_sqm=Decimal("70"), details=details))
        assert out.property_type == details["property_type"]
        assert isinstance(out.details, expected_type)

        again = properties_crud.get_property(db, out.id)
        assert again.details == out.details

    def test_variant_fields_are_validated(self):
        with pytest.raises(ValidationError):
            PropertyCreate(address="x", city="y", area_sqm=Decimal("10"),
                           details={"property_type": "APARTMENT", "floor": 1, "rooms": 0})
        with pytest.raises(ValidationError):
            PropertyCreate(address="x", city="y", area_sqm=Decimal("10"),
                           details={"property_type": "CASTLE"})

    def test_update_switches_variant(self, db, seed, manager_user):
        out = properties_crud.update_property(db, manager_user, seed.apartment.id, PropertyUpdate(
            city="Roma", details=OfficeDetails(workstations=4, meeting_rooms=1)))
        assert out.city == "Roma"
        assert out.property_type == "OFFICE"
        assert out.details.workstations == 4

    def test_list_by_type(self, db, seed):
        result = properties_crud.list_properties(db, PropertyRequest(property_type="shop"))
        assert result["total"] == 1
        assert result["properties"][0].address == "Corso Italia 10"

    def test_list_by_city(self, db, seed):
        assert properties_crud.list_properties(db, PropertyRequest(city="Milano"))["total"] == 2

    def test_delete_refused_while_leased(self, db, seed, make_lease, admin_user):
        make_lease()
        with pytest.raises(HTTPException):
            properties_crud.delete_property(db, admin_user, seed.apartment.id)

    def test_delete_free_property(self, db, seed, admin_user, manager_user):
        with pytest.raises(AccessDenied):
            properties_crud.delete_property(db, manager_user, seed.office.id)
        properties_crud.delete_property(db, admin_user, seed.office.id)
        with pytest.raises(EntityNotFound):
            properties_crud.get_property(db, seed.office.id)

    def test_count_by_type(self, db, seed):
        assert properties_crud.count_by_type(db) == {"APARTMENT": 1, "SHOP": 1, "OFFICE": 1}

    def test_count_by_type_reports_missing_types(self, db, seed, admin_user):
        properties_crud.delete_property(db, admin_user, seed.shop.id)
        assert properties_crud.count_by_type(db)["SHOP"] == 0

    def test_rented_by_city_counts_each_property_once(self, db, seed, make_lease, manager_user):
        make_lease()
        make_lease(tenant=seed.bob, start_date=date(2026, 1, 1))
        make_lease(tenant=seed.bob, prop=seed.shop)
        assert properties_crud.count_rented_by_city(db, manager_user) == {"Milano": 1, "Torino": 1}

    def test_rented_by_city_without_leases(self, db, seed, admin_user):
        assert properties_crud.count_rented_by_city(db, admin_user) == {}

    def test_rented_by_city_needs_elevated_role(self, db, seed, alice_user):
        with pytest.raises(AccessDenied):
            properties_crud.count_rented_by_city(db, alice_user)


class TestTenants:

    def test_create_with_new_login(self, db, seed, manager_user):
        out = tenants_crud.create_tenant(db, manager_user, TenantCreate(
            email="Carla@Example.com", first_name="Carla", last_name="Verdi",
            tax_code="VRDCRL90C41L219K"))
        assert out.email == "carla@example.com"
        assert db.query(User).filter(User.email == "carla@example.com").one().id == out.user_id

    def test_create_for_existing_login(self, db, seed, manager_user):
        out = tenants_crud.create_tenant(db, manager_user, TenantCreate(
            user_id=seed.staff_login.id, first_name="Staff", last_name="Member",
            tax_code="MMBSTF70A01F205Z"))
        assert out.user_id == seed.staff_login.id

    def test_login_bound_only_once(self, db, seed, manager_user):
        with pytest.raises(HTTPException):
            tenants_crud.create_tenant(db, manager_user, TenantCreate(
                user_id=seed.alice_login.id, first_name="A", last_name="R", tax_code="NEWCODE"))

    def test_duplicate_tax_code(self, db, seed, manager_user):
        with pytest.raises(HTTPException):
            tenants_crud.create_tenant(db, manager_user, TenantCreate(
                email="other@example.com", first_name="O", last_name="T",
                tax_code=seed.alice.tax_code))

    def test_unknown_login(self, db, seed, manager_user):
        with pytest.raises(EntityNotFound):
            tenants_crud.create_tenant(db, manager_user, TenantCreate(
                user_id=uuid4(), first_name="X", last_name="Y", tax_code="XYZ"))

    def test_identity_is_required(self):
        with pytest.raises(ValidationError):
            TenantCreate(first_name="X", last_name="Y", tax_code="XYZ")

    def test_tenant_reads(self, db, seed, alice_user, bob_user):
        assert tenants_crud.get_my_tenant(db, alice_user).id == seed.alice.id
        assert tenants_crud.get_tenant(db, alice_user, seed.alice.id).tax_code == seed.alice.tax_code
        with pytest.raises(AccessDenied):
            tenants_crud.get_tenant(db, bob_user, seed.alice.id)

    def test_list_scoping_and_search(self, db, seed, alice_user, admin_user):
        assert tenants_crud.list_tenants(db, admin_user, TenantRequest())["total"] == 2
        assert tenants_crud.list_tenants(db, alice_user, TenantRequest())["total"] == 1
        found = tenants_crud.list_tenants(db, admin_user, TenantRequest(search="Bian"))
        assert [t.last_name for t in found["tenants"]] == ["Bianchi"]

    def test_tenants_with_long_leases(self, db, seed, make_lease, admin_user):
        make_lease(duration_years=3)
        make_lease(tenant=seed.bob, prop=seed.shop, duration_years=2)
        found = tenants_crud.list_tenants_with_long_leases(db, admin_user)
        assert [t.id for t in found] == [seed.alice.id]

    def test_long_lease_threshold_is_exclusive(self, db, seed, make_lease, admin_user):
        make_lease(duration_years=3)
        assert tenants_crud.list_tenants_with_long_leases(db, admin_user, min_years=3) == []
        assert len(tenants_crud.list_tenants_with_long_leases(db, admin_user, min_years=1)) == 1

    def test_tenant_with_two_long_leases_listed_once(self, db, seed, make_lease, admin_user):
        make_lease(duration_years=3)
        make_lease(prop=seed.office, duration_years=5)
        assert len(tenants_crud.list_tenants_with_long_leases(db, admin_user)) == 1

    def test_long_leases_scoped_for_tenants(self, db, seed, make_lease, alice_user, bob_user):
        make_lease(duration_years=3)
        assert [t.id for t in tenants_crud.list_tenants_with_long_leases(db, alice_user)] == [seed.alice.id]
        assert tenants_crud.list_tenants_with_long_leases(db, bob_user) == []

    def test_my_tenant_missing(self, db, seed):
        from shared.core.schemas import UserToken
        from shared.utils.enums import UserRole

        staff = UserToken(user_id=seed.staff_login.id, roles=[UserRole.TENANT])
        with pytest.raises(EntityNotFound):
            tenants_crud.get_my_tenant(db, staff)
