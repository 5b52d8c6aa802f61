"""Tests for buildings, tenants and shops."""

from decimal import Decimal

import pytest

from propfin.domain.errors import InvalidAmountError, NotFoundError, ValidationError


def test_create_and_list_buildings(property_service, user_id, other_user_id):
    property_service.create_building(user_id, "Market Complex")
    property_service.create_building(other_user_id, "Elsewhere")

    assert [b.name for b in property_service.list_buildings(user_id)] == ["Market Complex"]


def test_building_name_required(property_service, user_id):
    with pytest.raises(ValidationError):
        property_service.create_building(user_id, "  ")


def test_update_building(property_service, sample_building, user_id):
    property_service.update_building(sample_building.id, user_id, address="Brigade Road", total_shops=12)
    building = property_service.get_building(sample_building.id, user_id)
    assert (building.address, building.total_shops) == ("Brigade Road", 12)

    with pytest.raises(ValidationError):
        property_service.update_building(sample_building.id, user_id, owner_id=5)


def test_tenant_contact_fields(property_service, user_id):
    tenant_id = property_service.create_tenant(
        user_id, "Meena", phone="98450", email="meena@example.com", id_number="1234-5678"
    )
    property_service.update_tenant(tenant_id, user_id, address="Jayanagar")

    tenant = property_service.get_tenant(tenant_id, user_id)
    assert (tenant.phone, tenant.id_number, tenant.address) == ("98450", "1234-5678", "Jayanagar")

    with pytest.raises(ValidationError):
        property_service.create_tenant(user_id, "Ghost", nickname="boo")


def test_tenant_of_other_user_is_hidden(property_service, sample_tenant, other_user_id):
    with pytest.raises(NotFoundError):
        property_service.get_tenant(sample_tenant.id, other_user_id)


def test_create_vacant_shop(property_service, sample_building, user_id):
    shop_id = property_service.create_shop(user_id, sample_building.id, "F-01", Decimal("4500.50"))
    shop = property_service.get_shop(shop_id, user_id)

    assert shop.monthly_rent == Decimal("4500.50")
    assert shop.tenant_id is None
    assert shop.allocated_at is None
    assert shop.is_occupied is False


def test_create_shop_in_foreign_building(property_service, sample_building, other_user_id):
    with pytest.raises(NotFoundError):
        property_service.create_shop(other_user_id, sample_building.id, "X", Decimal("1"))


def test_create_shop_with_foreign_tenant(
    property_service, sample_building, user_id, other_user_id
):
    theirs = property_service.create_tenant(other_user_id, "Not yours")
    with pytest.raises(NotFoundError):
        property_service.create_shop(
            user_id, sample_building.id, "X", Decimal("1"), tenant_id=theirs, allocated_at="2024-01-01"
        )


def test_negative_rent_rejected(property_service, sample_building, user_id):
    with pytest.raises(InvalidAmountError):
        property_service.create_shop(user_id, sample_building.id, "X", Decimal("-1"))


def test_allocation_opens_link(temp_db, property_service, sample_shop, sample_tenant, user_id):
    (link,) = temp_db.list_tenant_shops(shop_id=sample_shop.id)
    assert link.tenant_id == sample_tenant.id
    assert link.is_active is True
    assert link.start_date.isoformat() == "2024-01-15"


def test_tenant_change_closes_old_link(temp_db, property_service, sample_shop, sample_tenant, user_id):
    new_tenant = property_service.create_tenant(user_id, "Lakshmi Stores")
    property_service.update_shop(sample_shop.id, user_id, tenant_id=new_tenant, allocated_at="2024-04-01")

    links = {link.tenant_id: link for link in temp_db.list_tenant_shops(shop_id=sample_shop.id)}
    assert links[sample_tenant.id].is_active is False
    assert links[sample_tenant.id].end_date.isoformat() == "2024-04-10"
    assert links[new_tenant].is_active is True


def test_update_shop_rejects_unknown_field(property_service, sample_shop, user_id):
    with pytest.raises(ValidationError):
        property_service.update_shop(sample_shop.id, user_id, is_occupied=False)


def test_list_shops_by_building(property_service, sample_shop, sample_building, user_id):
    other = property_service.create_building(user_id, "Annex")
    property_service.create_shop(user_id, other, "A-1", Decimal("100"))

    assert [s.shop_number for s in property_service.list_shops(user_id, building_id=sample_building.id)] == ["G-01"]
    assert len(property_service.list_shops(user_id)) == 2
