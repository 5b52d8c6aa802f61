"""Shared pytest fixtures for propfin tests."""

import tempfile
import logging
import os
from datetime import datetime, timezone
from decimal import Decimal
import pytest

from propfin.database.factories import create_sqlite_database
from propfin.domain.account import AccountService
from propfin.domain.accrual import RentAccrualService
from propfin.domain.backup import BackupService
from propfin.domain.cascade import CascadeService
from propfin.domain.category import CategoryService
from propfin.domain.property import PropertyService
from propfin.domain.rent import RentPaymentService
from propfin.domain.transaction import TransactionService
from propfin.domain.transfer import TransferService

# "Now" for every service in the tests: 10 April 2024, so Jan-Mar 2024 are
# fully elapsed months and April is still in progress.
FIXED_NOW = datetime(2024, 4, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """Fixed clock for deterministic accrual."""
    return lambda: FIXED_NOW


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def user_id(temp_db):
    """The acting user. ID 1 matches the CLI default."""
    return temp_db.create_user(username="owner", user_id=1)


@pytest.fixture
def other_user_id(temp_db, user_id):
    """A second user who must never see or touch the first user's rows."""
    return temp_db.create_user(username="intruder", user_id=2)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def rent_service(temp_db, clock):
    return RentPaymentService(temp_db, clock)


@pytest.fixture
def transaction_service(temp_db, clock, rent_service):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, clock, rent_service=rent_service)


@pytest.fixture
def transfer_service(temp_db, clock):
    return TransferService(temp_db, clock)


@pytest.fixture
def accrual_service(temp_db, clock):
    return RentAccrualService(temp_db, clock)


@pytest.fixture
def property_service(temp_db, clock):
    return PropertyService(temp_db, clock)


@pytest.fixture
def cascade_service(temp_db):
    return CascadeService(temp_db)


@pytest.fixture
def category_service(temp_db):
    return CategoryService(temp_db)


@pytest.fixture
def backup_service(temp_db, clock):
    return BackupService(temp_db, clock)


@pytest.fixture
def sample_account(account_service, user_id):
    """Savings account opened with 5000."""
    account_id = account_service.create_account(
        user_id=user_id, name="Savings", account_type="savings", initial_balance=Decimal("5000")
    )
    return account_service.get_account(account_id, user_id)


@pytest.fixture
def sample_building(property_service, user_id):
    building_id = property_service.create_building(user_id, "Market Complex", address="MG Road")
    return property_service.get_building(building_id, user_id)


@pytest.fixture
def sample_tenant(property_service, user_id):
    tenant_id = property_service.create_tenant(user_id, "Ravi Traders", phone="9800000000")
    return property_service.get_tenant(tenant_id, user_id)


@pytest.fixture
def sample_shop(property_service, user_id, sample_building, sample_tenant):
    """Shop rented at 10000 to the sample tenant from 2024-01-15."""
    shop_id = property_service.create_shop(
        user_id=user_id,
        building_id=sample_building.id,
        shop_number="G-01",
        monthly_rent=Decimal("10000"),
        advance=Decimal("50000"),
        tenant_id=sample_tenant.id,
        allocated_at="2024-01-15",
    )
    return property_service.get_shop(shop_id, user_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    yield CliRunner()

    # The CLI points the root handler at the runner's stderr, which is gone now
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
