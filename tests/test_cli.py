"""Tests for the propfin command line."""

import json

from propfin.cli.main import cli


def run(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def test_help_does_not_touch_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "rent" in result.output


def test_account_create_and_list(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "account", "create", "HDFC Savings", "--initial-balance", "5,000")
    assert result.exit_code == 0
    assert "Created account 'HDFC Savings' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "account", "list")
    assert result.exit_code == 0
    assert "HDFC Savings" in result.output
    assert "5000.00" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "account", "list")
    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    run(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    result = run(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_account_delete_requires_confirmation(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "account", "delete", "Savings", input="n\n")
    assert "Deletion cancelled" in result.output

    result = run(cli_runner, temp_db, "account", "delete", "Savings", "--yes")
    assert result.exit_code == 0
    assert "Deleted account 'Savings'" in result.output


def test_transaction_add_list_delete(cli_runner, temp_db, sample_account):
    result = run(
        cli_runner, temp_db, "txn", "add", "--account", "Savings", "--type", "expense",
        "--amount", "1,500", "--description", "Groceries", "--date", "2024-03-02",
    )
    assert result.exit_code == 0
    assert "Created transaction 1" in result.output

    result = run(cli_runner, temp_db, "txn", "list")
    assert "2024-03-02" in result.output
    assert "Groceries" in result.output

    assert "3500.00" in run(cli_runner, temp_db, "account", "list").output

    result = run(cli_runner, temp_db, "txn", "delete", "1")
    assert result.exit_code == 0
    assert "5000.00" in run(cli_runner, temp_db, "account", "list").output


def test_transaction_unknown_account(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "txn", "add", "--account", "Nope", "--type", "income", "--amount", "1")
    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output


def test_transaction_rejects_zero_amount(cli_runner, temp_db, sample_account):
    result = run(cli_runner, temp_db, "txn", "add", "--account", "1", "--type", "income", "--amount", "0")
    assert result.exit_code == 1
    assert "greater than zero" in result.output


def test_transfer_insufficient_balance_exit_code(cli_runner, temp_db, sample_account):
    run(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    result = run(cli_runner, temp_db, "transfer", "create", "Savings", "Wallet", "6000")

    assert result.exit_code == 2
    assert "Insufficient balance" in result.output


def test_transfer_create_and_delete(cli_runner, temp_db, sample_account):
    run(cli_runner, temp_db, "account", "create", "Wallet", "--type", "cash")
    result = run(cli_runner, temp_db, "transfer", "create", "Savings", "Wallet", "1000", "--description", "Cash")
    assert result.exit_code == 0
    assert "Created transfer 1" in result.output

    assert "1 -> 2" in run(cli_runner, temp_db, "transfer", "list").output

    result = run(cli_runner, temp_db, "transfer", "delete", "1")
    assert result.exit_code == 0
    assert "No transfers found" in run(cli_runner, temp_db, "transfer", "list").output


def test_property_setup_accrues_rent(cli_runner, temp_db):
    assert run(cli_runner, temp_db, "property", "add-building", "Market Complex").exit_code == 0
    assert run(cli_runner, temp_db, "property", "add-tenant", "Ravi Traders").exit_code == 0
    result = run(
        cli_runner, temp_db, "property", "add-shop", "--building", "1", "--number", "G-01",
        "--rent", "10000", "--tenant", "1", "--allocated", "2024-01-15",
    )
    assert result.exit_code == 0
    assert "Created shop 'G-01' (ID: 1)" in result.output

    result = run(cli_runner, temp_db, "rent", "list", "--year", "2024")
    assert result.exit_code == 0
    assert "2024-01" in result.output
    assert "2024-03" in result.output
    assert "Pending before this month" in result.output

    listing = run(cli_runner, temp_db, "property", "list").output
    assert "Market Complex" in listing
    assert "tenant 1 since 2024-01-15" in listing


def test_rent_pay_with_deposit(cli_runner, temp_db, sample_account, sample_shop, sample_tenant):
    args = ["rent", "pay", "--tenant", str(sample_tenant.id), "--shop", str(sample_shop.id),
            "--month", "1", "--year", "2024"]

    result = run(cli_runner, temp_db, *args, "--amount", "6000", "--account", "Savings")
    assert result.exit_code == 0
    assert "Deposited as transaction 1" in result.output
    assert "paid 6000.00 of 10000.00, pending 4000.00 (pending)" in result.output

    result = run(cli_runner, temp_db, *args, "--amount", "4001")
    assert result.exit_code == 2
    assert "exceeds rent due" in result.output

    result = run(cli_runner, temp_db, *args, "--amount", "4000")
    assert result.exit_code == 0
    assert "pending 0.00 (paid)" in result.output

    assert "11000.00" in run(cli_runner, temp_db, "account", "list").output


def test_rent_reverse_missing_period(cli_runner, temp_db, sample_shop, sample_tenant):
    result = run(
        cli_runner, temp_db, "rent", "reverse", "--tenant", str(sample_tenant.id),
        "--shop", str(sample_shop.id), "--month", "1", "--year", "2020", "--amount", "5",
    )
    assert result.exit_code == 0
    assert "nothing to reverse" in result.output


def test_rent_advance(cli_runner, temp_db, sample_account, sample_shop):
    result = run(cli_runner, temp_db, "rent", "advance", "--shop", str(sample_shop.id), "--account", "Savings")
    assert result.exit_code == 0

    result = run(cli_runner, temp_db, "rent", "advance", "--shop", str(sample_shop.id), "--account", "Savings")
    assert result.exit_code == 2
    assert "already paid" in result.output


def test_rent_accrue_and_recalculate(cli_runner, temp_db, sample_shop):
    result = run(cli_runner, temp_db, "rent", "accrue", "--shop", str(sample_shop.id))
    assert result.exit_code == 0
    assert "Created" in result.output

    # A second run right after finds nothing missing
    result = run(cli_runner, temp_db, "rent", "accrue")
    assert result.exit_code == 0
    assert "Created 0 rent periods" in result.output

    result = run(cli_runner, temp_db, "rent", "recalculate")
    assert result.exit_code == 0
    assert "Recalculated" in result.output


def test_rent_watch_once(cli_runner, temp_db, sample_shop):
    result = run(cli_runner, temp_db, "rent", "watch", "--once")
    assert result.exit_code == 0
    assert "Created" in result.output


def test_rent_watch_invalid_interval(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("PROPFIN_SWEEP_INTERVAL", "-1")
    result = run(cli_runner, temp_db, "rent", "watch")
    assert result.exit_code == 1
    assert "PROPFIN_SWEEP_INTERVAL" in result.output


def test_delete_tenant_frees_shop(cli_runner, temp_db, sample_shop, sample_tenant):
    result = run(cli_runner, temp_db, "property", "delete-tenant", str(sample_tenant.id))
    assert result.exit_code == 0
    assert "vacant" in run(cli_runner, temp_db, "property", "list").output
    assert "No rent periods found" in run(cli_runner, temp_db, "rent", "list").output


def test_delete_foreign_building(cli_runner, temp_db, sample_building):
    result = run(cli_runner, temp_db, "--user", "2", "property", "delete-building", str(sample_building.id))
    assert result.exit_code == 1
    assert "not found" in result.output


def test_backup_export_and_import(cli_runner, temp_db, sample_account, sample_shop, tmp_path):
    backup_file = tmp_path / "backup.json"

    result = run(cli_runner, temp_db, "backup", "export", str(backup_file))
    assert result.exit_code == 0
    document = json.loads(backup_file.read_text(encoding="utf-8"))
    assert document["accounts"][0]["name"] == "Savings"

    run(cli_runner, temp_db, "account", "create", "Temporary", "--type", "cash")

    result = run(cli_runner, temp_db, "backup", "import", str(backup_file), "--yes")
    assert result.exit_code == 0
    assert "Data imported successfully" in result.output
    assert "accounts: 1" in result.output
    assert "Temporary" not in run(cli_runner, temp_db, "account", "list").output


def test_backup_import_invalid_file(cli_runner, temp_db, sample_account, tmp_path):
    backup_file = tmp_path / "broken.json"
    backup_file.write_text('{"accounts": [{"name": "No type"}]}', encoding="utf-8")

    result = run(cli_runner, temp_db, "backup", "import", str(backup_file), "--yes")
    assert result.exit_code == 1
    assert "missing required property 'accountType'" in result.output
    assert "Savings" in run(cli_runner, temp_db, "account", "list").output
