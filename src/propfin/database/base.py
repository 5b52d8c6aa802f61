"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain services
from propfin.domain.entities import (
    User,
    BankAccount,
    Category,
    Building,
    Tenant,
    Shop,
    TenantShop,
    Transaction,
    Transfer,
    RentPayment,
)

# Backup tables, keyed by name, that ``dump_user_rows``/``insert_rows`` accept.
TABLE_NAMES = (
    "bank_accounts",
    "categories",
    "buildings",
    "tenants",
    "shops",
    "tenant_shops",
    "transactions",
    "transfers",
    "rent_payments",
)


class Database(ABC):
    """Abstract database interface for propfin.

    Write methods commit immediately unless called inside ``atomic()``, in
    which case they only stage their changes and the whole block commits or
    rolls back together.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group the writes made inside the block into one all-or-nothing unit.

        Nested blocks join the outermost one.
        """
        pass

    # User operations
    @abstractmethod
    def create_user(self, username: str, user_id: Optional[int] = None) -> int:
        """Create a user. Returns user ID."""
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        pass

    # Bank account operations
    @abstractmethod
    def create_account(
        self,
        user_id: int,
        name: str,
        account_type: str,
        initial_balance: Decimal,
        account_number: str = "",
        is_active: bool = True,
    ) -> int:
        """Create an account with current balance equal to initial balance. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int, for_update: bool = False) -> Optional[BankAccount]:
        """Get account by ID, optionally locking the row for a balance update."""
        pass

    @abstractmethod
    def list_accounts(self, user_id: int) -> list[BankAccount]:
        """List a user's accounts."""
        pass

    @abstractmethod
    def update_account(self, account_id: int, **fields: Any) -> None:
        """Update descriptive account fields (name, account_number, account_type, is_active)."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal) -> None:
        """Overwrite an account's current balance."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account row."""
        pass

    # Category operations
    @abstractmethod
    def create_category(
        self, user_id: int, name: str, type: str, context: str, color: Optional[str] = None
    ) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def list_categories(self, user_id: int, context: Optional[str] = None) -> list[Category]:
        """List a user's categories, optionally for one context."""
        pass

    @abstractmethod
    def update_category(self, category_id: int, **fields: Any) -> None:
        """Update category fields."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category row."""
        pass

    # Building operations
    @abstractmethod
    def create_building(
        self, user_id: int, name: str, address: Optional[str] = None, total_shops: int = 0
    ) -> int:
        """Create a building. Returns building ID."""
        pass

    @abstractmethod
    def get_building(self, building_id: int) -> Optional[Building]:
        """Get building by ID."""
        pass

    @abstractmethod
    def list_buildings(self, user_id: int) -> list[Building]:
        """List a user's buildings."""
        pass

    @abstractmethod
    def update_building(self, building_id: int, **fields: Any) -> None:
        """Update building fields."""
        pass

    @abstractmethod
    def delete_building(self, building_id: int) -> None:
        """Delete a building row."""
        pass

    # Tenant operations
    @abstractmethod
    def create_tenant(self, user_id: int, name: str, **fields: Any) -> int:
        """Create a tenant. Returns tenant ID."""
        pass

    @abstractmethod
    def get_tenant(self, tenant_id: int) -> Optional[Tenant]:
        """Get tenant by ID."""
        pass

    @abstractmethod
    def list_tenants(self, user_id: int) -> list[Tenant]:
        """List a user's tenants."""
        pass

    @abstractmethod
    def update_tenant(self, tenant_id: int, **fields: Any) -> None:
        """Update tenant fields."""
        pass

    @abstractmethod
    def delete_tenant(self, tenant_id: int) -> None:
        """Delete a tenant row."""
        pass

    # Shop operations
    @abstractmethod
    def create_shop(
        self,
        user_id: int,
        building_id: int,
        shop_number: str,
        monthly_rent: Decimal,
        **fields: Any,
    ) -> int:
        """Create a shop. Returns shop ID."""
        pass

    @abstractmethod
    def get_shop(self, shop_id: int) -> Optional[Shop]:
        """Get shop by ID."""
        pass

    @abstractmethod
    def list_shops(
        self,
        user_id: Optional[int] = None,
        building_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        allocated_only: bool = False,
    ) -> list[Shop]:
        """List shops with optional filters.

        Args:
            user_id: Only shops owned by this user (all users when None)
            building_id: Only shops in this building
            tenant_id: Only shops allocated to this tenant
            allocated_only: Only shops with both a tenant and an allocation date
        """
        pass

    @abstractmethod
    def update_shop(self, shop_id: int, **fields: Any) -> None:
        """Update shop fields."""
        pass

    @abstractmethod
    def release_tenant_shops(self, tenant_id: int) -> int:
        """Deallocate every shop held by a tenant. Returns shops changed."""
        pass

    @abstractmethod
    def delete_shop(self, shop_id: int) -> None:
        """Delete a shop row."""
        pass

    # Tenant-shop link operations
    @abstractmethod
    def create_tenant_shop(self, tenant_id: int, shop_id: int, start_date: Optional[date]) -> int:
        """Open an allocation link. Returns link ID."""
        pass

    @abstractmethod
    def close_tenant_shops(self, shop_id: int, end_date: date) -> int:
        """Mark a shop's active links as ended. Returns links closed."""
        pass

    @abstractmethod
    def list_tenant_shops(
        self, shop_id: Optional[int] = None, tenant_id: Optional[int] = None
    ) -> list[TenantShop]:
        """List allocation links."""
        pass

    @abstractmethod
    def delete_tenant_shops(
        self, shop_id: Optional[int] = None, tenant_id: Optional[int] = None
    ) -> int:
        """Delete allocation links for a shop or a tenant. Returns rows deleted."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        user_id: int,
        account_id: Optional[int],
        description: str,
        amount: Decimal,
        type: str,
        context: str,
        transaction_date: datetime,
        **fields: Any,
    ) -> int:
        """Create a transaction row. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(
        self,
        user_id: Optional[int] = None,
        context: Optional[str] = None,
        account_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """List transactions newest first with optional filters."""
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction row."""
        pass

    @abstractmethod
    def delete_account_transactions(self, account_id: int) -> int:
        """Delete every transaction posted to an account. Returns rows deleted."""
        pass

    @abstractmethod
    def clear_transaction_reference(self, column: str, value: int) -> int:
        """Set ``column`` to NULL on transactions where it equals ``value``.

        ``column`` is one of account_id, category_id, tenant_id, shop_id, building_id.
        Returns rows changed.
        """
        pass

    # Transfer operations
    @abstractmethod
    def create_transfer(
        self,
        user_id: int,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        description: Optional[str],
        transfer_date: datetime,
    ) -> int:
        """Create a transfer row. Returns transfer ID."""
        pass

    @abstractmethod
    def get_transfer(self, transfer_id: int) -> Optional[Transfer]:
        """Get transfer by ID."""
        pass

    @abstractmethod
    def list_transfers(
        self, user_id: Optional[int] = None, account_id: Optional[int] = None
    ) -> list[Transfer]:
        """List transfers newest first; ``account_id`` matches either side."""
        pass

    @abstractmethod
    def delete_transfer(self, transfer_id: int) -> None:
        """Delete a transfer row."""
        pass

    @abstractmethod
    def delete_account_transfers(self, account_id: int) -> int:
        """Delete transfers where the account is either side. Returns rows deleted."""
        pass

    # Rent payment operations
    @abstractmethod
    def create_rent_payment(
        self,
        user_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        amount: Decimal,
        paid_amount: Decimal,
        pending_amount: Decimal,
        status: str,
        payment_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a rent period row. Returns rent payment ID."""
        pass

    @abstractmethod
    def get_rent_payment(self, rent_payment_id: int) -> Optional[RentPayment]:
        """Get rent payment by ID."""
        pass

    @abstractmethod
    def find_rent_payment(
        self,
        user_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        for_update: bool = False,
    ) -> Optional[RentPayment]:
        """Get the rent period for a natural key, optionally locking it."""
        pass

    @abstractmethod
    def list_rent_payments(
        self,
        user_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        shop_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[RentPayment]:
        """List rent periods ordered by year, month, id."""
        pass

    @abstractmethod
    def update_rent_payment(self, rent_payment_id: int, **fields: Any) -> None:
        """Update rent period fields."""
        pass

    @abstractmethod
    def delete_rent_payment(self, rent_payment_id: int) -> None:
        """Delete a rent period row."""
        pass

    @abstractmethod
    def delete_rent_payments(
        self,
        user_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        shop_id: Optional[int] = None,
        before: Optional[tuple[int, int]] = None,
    ) -> int:
        """Delete rent periods matching every given filter.

        Args:
            before: ``(year, month)``; only periods strictly earlier are deleted

        Returns:
            Rows deleted
        """
        pass

    # Bulk operations used by backup/restore
    @abstractmethod
    def dump_user_rows(self, table: str, user_id: int) -> list[dict[str, Any]]:
        """Return every row of ``table`` owned by the user as column dicts, ordered by id."""
        pass

    @abstractmethod
    def insert_rows(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert rows with their primary keys as given. Returns rows inserted."""
        pass

    @abstractmethod
    def delete_user_rows(self, table: str, user_id: int) -> int:
        """Delete every row of ``table`` owned by the user. Returns rows deleted."""
        pass

    @abstractmethod
    def reset_sequences(self) -> dict[str, int]:
        """Realign auto-increment counters to ``max(id) + 1``. Returns next id per table."""
        pass
