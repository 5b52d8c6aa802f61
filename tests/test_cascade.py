"""Tests for deleting buildings, shops, tenants and accounts with their dependents."""

from decimal import Decimal

import pytest

from propfin.domain.errors import AccountNotFoundError, NotFoundError


@pytest.fixture
def collected(rent_service, sample_account, sample_shop, sample_tenant, user_id):
    """January rent collected into the sample account."""
    _, txn_id = rent_service.collect_rent(
        user_id, sample_account.id, sample_tenant.id, sample_shop.id, 1, 2024, Decimal("10000")
    )
    return txn_id


def test_delete_shop_removes_periods_and_links(
    temp_db, cascade_service, rent_service, transaction_service, sample_shop, collected, user_id
):
    cascade_service.delete_shop(sample_shop.id, user_id)

    assert temp_db.get_shop(sample_shop.id) is None
    assert rent_service.list_rent_payments(user_id) == []
    assert temp_db.list_tenant_shops(shop_id=sample_shop.id) == []
    # The deposit stays on the account, detached from the shop
    txn = transaction_service.get_transaction(collected)
    assert txn is not None
    assert txn.shop_id is None


def test_delete_building_removes_its_shops(
    temp_db, cascade_service, property_service, rent_service, transaction_service,
    sample_building, sample_shop, sample_tenant, collected, user_id,
):
    second = property_service.create_shop(
        user_id, sample_building.id, "G-02", Decimal("7000"),
        tenant_id=sample_tenant.id, allocated_at="2024-02-01",
    )

    cascade_service.delete_building(sample_building.id, user_id)

    assert temp_db.get_building(sample_building.id) is None
    assert temp_db.get_shop(sample_shop.id) is None
    assert temp_db.get_shop(second) is None
    assert rent_service.list_rent_payments(user_id) == []
    txn = transaction_service.get_transaction(collected)
    assert (txn.shop_id, txn.building_id) == (None, None)
    # The tenant outlives the building
    assert property_service.get_tenant(sample_tenant.id, user_id).name == "Ravi Traders"


def test_delete_tenant_frees_shops(
    temp_db, cascade_service, property_service, rent_service, transaction_service,
    sample_shop, sample_tenant, collected, user_id,
):
    cascade_service.delete_tenant(sample_tenant.id, user_id)

    shop = property_service.get_shop(sample_shop.id, user_id)
    assert shop.tenant_id is None
    assert shop.allocated_at is None
    assert shop.is_occupied is False
    assert shop.is_advance_paid is False
    assert rent_service.list_rent_payments(user_id) == []
    assert temp_db.list_tenant_shops(tenant_id=sample_tenant.id) == []
    assert transaction_service.get_transaction(collected).tenant_id is None
    assert temp_db.get_tenant(sample_tenant.id) is None


def test_delete_account_removes_transactions_and_transfers(
    temp_db, account_service, cascade_service, transfer_service, transaction_service,
    sample_account, collected, user_id,
):
    wallet = account_service.create_account(user_id, "Wallet", "cash")
    transfer_service.create_transfer(user_id, sample_account.id, wallet, Decimal("500"))

    cascade_service.delete_account(sample_account.id, user_id)

    assert temp_db.get_account(sample_account.id) is None
    assert transaction_service.get_transaction(collected) is None
    assert transfer_service.list_transfers(user_id) == []
    wallet_balance = account_service.get_account(wallet, user_id).current_balance
    assert wallet_balance == Decimal("0")
    assert wallet_balance == account_service.recompute_balance(wallet, user_id)


def test_delete_account_reverses_inbound_transfers(
    account_service, cascade_service, transfer_service, sample_account, user_id
):
    wallet = account_service.create_account(user_id, "Wallet", "cash", Decimal("800"))
    transfer_service.create_transfer(user_id, wallet, sample_account.id, Decimal("300"))

    cascade_service.delete_account(sample_account.id, user_id)

    wallet_balance = account_service.get_account(wallet, user_id).current_balance
    assert wallet_balance == Decimal("800")
    assert wallet_balance == account_service.recompute_balance(wallet, user_id)


def test_cascade_checks_ownership(
    temp_db, cascade_service, sample_account, sample_building, sample_shop, sample_tenant, other_user_id
):
    with pytest.raises(NotFoundError):
        cascade_service.delete_building(sample_building.id, other_user_id)
    with pytest.raises(NotFoundError):
        cascade_service.delete_shop(sample_shop.id, other_user_id)
    with pytest.raises(NotFoundError):
        cascade_service.delete_tenant(sample_tenant.id, other_user_id)
    with pytest.raises(AccountNotFoundError):
        cascade_service.delete_account(sample_account.id, other_user_id)

    assert temp_db.get_shop(sample_shop.id) is not None


def test_failed_cascade_deletes_nothing(temp_db, cascade_service, rent_service, sample_shop, user_id, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(temp_db, "delete_shop", boom)

    with pytest.raises(RuntimeError):
        cascade_service.delete_shop(sample_shop.id, user_id)

    assert len(rent_service.list_rent_payments(user_id)) == 3
    assert len(temp_db.list_tenant_shops(shop_id=sample_shop.id)) == 1
