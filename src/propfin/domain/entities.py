"""Domain model entities for propfin.

These are pure data classes representing business concepts, independent of
database schema. Services receive and return these; only the database layer
knows about ORM rows.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from typing import Optional

ACCOUNT_TYPES = (
    "savings",
    "current",
    "credit_card",
    "fixed_deposit",
    "cash",
    "investment",
    "chit_fund",
)

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

PERSONAL = "personal"
PROPERTY = "property"
CONTEXTS = (PERSONAL, PROPERTY)

STATUS_PENDING = "pending"
STATUS_PAID = "paid"

PAYMENT_KIND_RENT = "rent"
PAYMENT_KIND_ADVANCE = "advance"
PAYMENT_KINDS = (PAYMENT_KIND_RENT, PAYMENT_KIND_ADVANCE)


@dataclass(frozen=True)
class User:
    """Owner of every other row."""

    id: int
    username: str
    created_at: datetime


@dataclass(frozen=True)
class BankAccount:
    """Bank account domain entity."""

    id: int
    user_id: int
    name: str
    account_number: str
    account_type: str
    initial_balance: Decimal
    current_balance: Decimal
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Category:
    """Income/expense category for a context."""

    id: int
    user_id: int
    name: str
    type: str
    context: str
    color: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Building:
    """Building domain entity."""

    id: int
    user_id: int
    name: str
    address: Optional[str]
    total_shops: int
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Tenant:
    """Tenant domain entity."""

    id: int
    user_id: int
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    id_number: Optional[str]
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Shop:
    """Rentable unit inside a building.

    ``allocated_at`` is the calendar day rent accrual starts for ``tenant_id``.
    """

    id: int
    user_id: int
    building_id: int
    shop_number: str
    name: Optional[str]
    monthly_rent: Decimal
    advance: Decimal
    is_occupied: bool
    is_advance_paid: bool
    is_active: bool
    tenant_id: Optional[int]
    allocated_at: Optional[date]
    created_at: datetime


@dataclass(frozen=True)
class TenantShop:
    """Allocation history link between a tenant and a shop."""

    id: int
    tenant_id: int
    shop_id: int
    start_date: Optional[date]
    end_date: Optional[date]
    is_active: bool


@dataclass(frozen=True)
class Transaction:
    """Income or expense event. ``amount`` is always a positive magnitude."""

    id: int
    user_id: int
    account_id: Optional[int]
    category_id: Optional[int]
    tenant_id: Optional[int]
    shop_id: Optional[int]
    building_id: Optional[int]
    description: str
    amount: Decimal
    type: str
    context: str
    transaction_date: datetime
    notes: Optional[str]
    payment_kind: Optional[str]
    rent_month: Optional[int]
    rent_year: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class Transfer:
    """Movement of funds between two of a user's accounts."""

    id: int
    user_id: int
    from_account_id: int
    to_account_id: int
    amount: Decimal
    description: Optional[str]
    transfer_date: datetime
    created_at: datetime


@dataclass(frozen=True)
class RentPayment:
    """Rent-due record for one (tenant, shop, month, year) period."""

    id: int
    user_id: int
    tenant_id: int
    shop_id: int
    month: int
    year: int
    amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str
    payment_date: Optional[datetime]
    notes: Optional[str]
    created_at: datetime

    @property
    def period_key(self) -> tuple[int, int, int, int]:
        """Natural key of the period."""
        return (self.tenant_id, self.shop_id, self.month, self.year)
