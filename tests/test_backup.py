"""Tests for backup export and all-or-nothing restore."""

import json
from decimal import Decimal

import pytest

from propfin.domain.backup import dumps, loads
from propfin.domain.errors import (
    InvalidBackupError,
    InvalidDateError,
    MissingFieldError,
    RestoreError,
)

DOCUMENT_KEYS = {
    "accounts",
    "categories",
    "buildings",
    "shops",
    "tenants",
    "transactions",
    "transfers",
    "rentPayments",
    "tenantShops",
}


@pytest.fixture
def populated(rent_service, category_service, sample_account, sample_shop, sample_tenant, user_id):
    """Sample property with January rent collected."""
    category_service.create_category(user_id, "Rent", "income", "property")
    rent_service.collect_rent(
        user_id, sample_account.id, sample_tenant.id, sample_shop.id, 1, 2024, Decimal("6000")
    )


def _without_timestamp(document):
    return {k: v for k, v in document.items() if k != "exportedAt"}


def _minimal_document():
    return {
        "accounts": [
            {"id": 10, "name": "Imported", "accountType": "savings", "initialBalance": "1000"}
        ],
        "categories": [],
        "buildings": [{"id": 5, "name": "Old Market"}],
        "tenants": [{"id": 7, "name": "Imported Tenant", "aadhaarNumber": "9999-0000"}],
        "shops": [
            {
                "id": 3,
                "buildingId": 5,
                "shopNumber": "S1",
                "monthlyRent": "2000",
                "tenantId": 7,
                "allocated_at": "2024-02-01",
                "isOccupied": True,
            }
        ],
        "transactions": [],
        "transfers": [],
        "rentPayments": [
            {
                "id": 1,
                "tenantId": 7,
                "shopId": 3,
                "month": 2,
                "year": 2024,
                "amount": "2000",
                "paidAmount": "2000",
                "pendingAmount": "2000",
                "status": "pending",
            }
        ],
    }


def test_export_shape(backup_service, populated, sample_shop, user_id):
    document = backup_service.export(user_id)

    assert DOCUMENT_KEYS <= set(document)
    assert document["version"] == 1
    assert document["exportedAt"] == "2024-04-10T12:00:00+00:00"

    (shop,) = document["shops"]
    assert shop["id"] == sample_shop.id
    assert shop["userId"] == user_id
    assert shop["shopNumber"] == "G-01"
    assert shop["monthlyRent"] == "10000.00"
    assert shop["allocated_at"] == "2024-01-15"
    assert "allocatedAt" not in shop

    assert len(document["rentPayments"]) == 3
    assert len(document["tenantShops"]) == 1
    assert "userId" not in document["tenantShops"][0]
    (txn,) = document["transactions"]
    assert (txn["paymentKind"], txn["rentMonth"], txn["amount"]) == ("rent", 1, "6000.00")


def test_export_is_json(backup_service, populated, user_id):
    assert json.loads(backup_service.export_text(user_id))["accounts"][0]["name"] == "Savings"


def test_export_excludes_other_users(backup_service, account_service, populated, other_user_id):
    account_service.create_account(other_user_id, "Theirs", "cash")
    assert [a["name"] for a in backup_service.export(other_user_id)["accounts"]] == ["Theirs"]
    assert backup_service.export(other_user_id)["rentPayments"] == []


def test_loads_rejects_invalid_json():
    with pytest.raises(InvalidBackupError, match="not valid JSON"):
        loads("{accounts: ")
    assert loads(dumps({"accounts": []})) == {"accounts": []}


def test_validate_rejects_non_object(backup_service):
    with pytest.raises(InvalidBackupError):
        backup_service.validate([])


def test_validate_requires_arrays(backup_service):
    document = _minimal_document()
    del document["transfers"]
    with pytest.raises(InvalidBackupError, match="'transfers' must be an array"):
        backup_service.validate(document)


def test_validate_tenant_shops_optional(backup_service):
    backup_service.validate(_minimal_document())


def test_validate_missing_required_field(backup_service):
    document = _minimal_document()
    del document["shops"][0]["monthlyRent"]

    with pytest.raises(MissingFieldError) as excinfo:
        backup_service.validate(document)
    assert excinfo.value.field == "monthlyRent"
    assert "shops[0]" in str(excinfo.value)


def test_validate_invalid_date(backup_service):
    document = _minimal_document()
    document["shops"][0]["allocated_at"] = "31/31/2024"

    with pytest.raises(InvalidDateError) as excinfo:
        backup_service.validate(document)
    assert (excinfo.value.table, excinfo.value.field) == ("shops", "allocated_at")


@pytest.mark.parametrize(
    "table, key, value",
    [
        ("rentPayments", "paidAmount", "-50"),
        ("rentPayments", "amount", "-1"),
        ("shops", "monthlyRent", "-2000"),
    ],
)
def test_validate_rejects_negative_money(backup_service, table, key, value):
    document = _minimal_document()
    document[table][0][key] = value

    with pytest.raises(InvalidBackupError, match=f"{key} in {table}\\[0\\] must not be negative"):
        backup_service.validate(document)


def test_validate_rejects_negative_transaction_amount(backup_service):
    document = _minimal_document()
    document["transactions"] = [{"id": 1, "accountId": 10, "type": "income", "amount": "-10"}]

    with pytest.raises(InvalidBackupError, match="must not be negative"):
        backup_service.validate(document)


@pytest.mark.parametrize(
    "table, record",
    [
        ("transactions", {"id": 1, "accountId": 10, "type": "transfer", "amount": "10"}),
        ("transactions", {"id": 1, "accountId": 10, "type": "income", "amount": "10", "context": "shared"}),
        ("transactions", {"id": 1, "accountId": 10, "type": "income", "amount": "10", "paymentKind": "deposit"}),
        ("categories", {"id": 1, "name": "Misc", "type": "other"}),
    ],
)
def test_validate_rejects_unknown_choice(backup_service, table, record):
    document = _minimal_document()
    document[table] = [record]

    with pytest.raises(InvalidBackupError, match="must be one of"):
        backup_service.validate(document)


def test_validate_rejects_unknown_account_type_and_status(backup_service):
    document = _minimal_document()
    document["accounts"][0]["accountType"] = "wallet"
    with pytest.raises(InvalidBackupError, match="accountType in accounts\\[0\\] must be one of"):
        backup_service.validate(document)

    document = _minimal_document()
    document["rentPayments"][0]["status"] = "partial"
    with pytest.raises(InvalidBackupError, match="status in rentPayments\\[0\\] must be one of"):
        backup_service.validate(document)


def test_negative_paid_amount_is_not_restored(backup_service, rent_service, populated, user_id):
    before = [(r.id, r.paid_amount) for r in rent_service.list_rent_payments(user_id)]
    document = _minimal_document()
    document["rentPayments"][0]["paidAmount"] = "-50"

    with pytest.raises(InvalidBackupError):
        backup_service.restore(user_id, document)
    assert [(r.id, r.paid_amount) for r in rent_service.list_rent_payments(user_id)] == before


def test_invalid_document_changes_nothing(backup_service, populated, user_id):
    before = _without_timestamp(backup_service.export(user_id))
    document = _minimal_document()
    del document["accounts"][0]["accountType"]

    with pytest.raises(MissingFieldError):
        backup_service.restore(user_id, document)
    assert _without_timestamp(backup_service.export(user_id)) == before


def test_restore_replaces_user_data(
    account_service, backup_service, property_service, rent_service, populated, user_id
):
    counts = backup_service.restore(user_id, _minimal_document())

    assert counts["accounts"] == 1
    assert counts["rentPayments"] == 1
    assert counts["tenantShops"] == 0
    assert [a.id for a in account_service.list_accounts(user_id)] == [10]
    assert account_service.get_account(10, user_id).current_balance == Decimal("1000")
    assert property_service.get_tenant(7, user_id).id_number == "9999-0000"

    # Derived rent fields are recomputed on import
    (rent,) = rent_service.list_rent_payments(user_id)
    assert (rent.pending_amount, rent.status) == (Decimal("0"), "paid")


def test_restore_round_trip(backup_service, transaction_service, populated, sample_account, user_id):
    document = backup_service.export(user_id)
    transaction_service.create_transaction(user_id, sample_account.id, "expense", Decimal("99"), "Later")

    backup_service.restore(user_id, document)

    assert _without_timestamp(backup_service.export(user_id)) == _without_timestamp(document)


def test_ids_continue_after_restore(account_service, backup_service, user_id):
    backup_service.restore(user_id, _minimal_document())
    assert account_service.create_account(user_id, "Fresh", "cash") > 10


def test_restore_leaves_other_users_alone(account_service, backup_service, populated, user_id, other_user_id):
    theirs = account_service.create_account(other_user_id, "Theirs", "cash", Decimal("42"))
    backup_service.restore(user_id, _minimal_document())
    assert account_service.get_account(theirs, other_user_id).current_balance == Decimal("42")


def test_failed_import_restores_previous_data(backup_service, populated, user_id):
    """A record that breaks mid-insert rolls the user back to the pre-import state."""
    before = _without_timestamp(backup_service.export(user_id))
    document = _minimal_document()
    document["transactions"] = [
        {"id": 50, "accountId": 999, "type": "income", "amount": "10", "transactionDate": "2024-02-01"}
    ]

    with pytest.raises(RestoreError) as excinfo:
        backup_service.restore(user_id, document)

    error = excinfo.value
    assert error.rolled_back is True
    assert error.rollback_error is None
    assert error.import_error is not None
    assert "previous data has been restored" in str(error)
    assert _without_timestamp(backup_service.export(user_id)) == before


def test_failed_rollback_reports_both_errors(temp_db, backup_service, populated, user_id, monkeypatch):
    def broken_insert(table, rows):
        raise RuntimeError(f"cannot write {table}")

    monkeypatch.setattr(temp_db, "insert_rows", broken_insert)

    with pytest.raises(RestoreError) as excinfo:
        backup_service.restore(user_id, _minimal_document())

    error = excinfo.value
    assert error.rolled_back is False
    assert isinstance(error.import_error, RuntimeError)
    assert isinstance(error.rollback_error, RuntimeError)
    assert "please verify your data" in str(error)
