"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so services never see ORM rows
and money always leaves the database quantized to two decimals.
"""

from decimal import Decimal
from propfin.domain import entities as domain
from propfin.domain.ledger import quantize
from propfin.database.models import (
    User as ORMUser,
    BankAccount as ORMBankAccount,
    Category as ORMCategory,
    Building as ORMBuilding,
    Tenant as ORMTenant,
    Shop as ORMShop,
    TenantShop as ORMTenantShop,
    Transaction as ORMTransaction,
    Transfer as ORMTransfer,
    RentPayment as ORMRentPayment,
)


def _money(value) -> Decimal:
    return quantize(value if value is not None else 0)


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    return domain.User(
        id=orm_user.id,
        username=orm_user.username,
        created_at=orm_user.created_at,
    )


def account_to_domain(orm_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_account.id,
        user_id=orm_account.user_id,
        name=orm_account.name,
        account_number=orm_account.account_number,
        account_type=orm_account.account_type,
        initial_balance=_money(orm_account.initial_balance),
        current_balance=_money(orm_account.current_balance),
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        user_id=orm_category.user_id,
        name=orm_category.name,
        type=orm_category.type,
        context=orm_category.context,
        color=orm_category.color,
        is_active=orm_category.is_active,
        created_at=orm_category.created_at,
    )


def building_to_domain(orm_building: ORMBuilding) -> domain.Building:
    return domain.Building(
        id=orm_building.id,
        user_id=orm_building.user_id,
        name=orm_building.name,
        address=orm_building.address,
        total_shops=orm_building.total_shops or 0,
        is_active=orm_building.is_active,
        created_at=orm_building.created_at,
    )


def tenant_to_domain(orm_tenant: ORMTenant) -> domain.Tenant:
    return domain.Tenant(
        id=orm_tenant.id,
        user_id=orm_tenant.user_id,
        name=orm_tenant.name,
        phone=orm_tenant.phone,
        email=orm_tenant.email,
        address=orm_tenant.address,
        id_number=orm_tenant.id_number,
        is_active=orm_tenant.is_active,
        created_at=orm_tenant.created_at,
    )


def shop_to_domain(orm_shop: ORMShop) -> domain.Shop:
    return domain.Shop(
        id=orm_shop.id,
        user_id=orm_shop.user_id,
        building_id=orm_shop.building_id,
        shop_number=orm_shop.shop_number,
        name=orm_shop.name,
        monthly_rent=_money(orm_shop.monthly_rent),
        advance=_money(orm_shop.advance),
        is_occupied=orm_shop.is_occupied,
        is_advance_paid=orm_shop.is_advance_paid,
        is_active=orm_shop.is_active,
        tenant_id=orm_shop.tenant_id,
        allocated_at=orm_shop.allocated_at,
        created_at=orm_shop.created_at,
    )


def tenant_shop_to_domain(orm_link: ORMTenantShop) -> domain.TenantShop:
    return domain.TenantShop(
        id=orm_link.id,
        tenant_id=orm_link.tenant_id,
        shop_id=orm_link.shop_id,
        start_date=orm_link.start_date,
        end_date=orm_link.end_date,
        is_active=orm_link.is_active,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        user_id=orm_transaction.user_id,
        account_id=orm_transaction.account_id,
        category_id=orm_transaction.category_id,
        tenant_id=orm_transaction.tenant_id,
        shop_id=orm_transaction.shop_id,
        building_id=orm_transaction.building_id,
        description=orm_transaction.description,
        amount=_money(orm_transaction.amount),
        type=orm_transaction.type,
        context=orm_transaction.context,
        transaction_date=orm_transaction.transaction_date,
        notes=orm_transaction.notes,
        payment_kind=orm_transaction.payment_kind,
        rent_month=orm_transaction.rent_month,
        rent_year=orm_transaction.rent_year,
        created_at=orm_transaction.created_at,
    )


def transfer_to_domain(orm_transfer: ORMTransfer) -> domain.Transfer:
    return domain.Transfer(
        id=orm_transfer.id,
        user_id=orm_transfer.user_id,
        from_account_id=orm_transfer.from_account_id,
        to_account_id=orm_transfer.to_account_id,
        amount=_money(orm_transfer.amount),
        description=orm_transfer.description,
        transfer_date=orm_transfer.transfer_date,
        created_at=orm_transfer.created_at,
    )


def rent_payment_to_domain(orm_rent: ORMRentPayment) -> domain.RentPayment:
    """Convert SQLAlchemy RentPayment model to domain RentPayment entity."""
    return domain.RentPayment(
        id=orm_rent.id,
        user_id=orm_rent.user_id,
        tenant_id=orm_rent.tenant_id,
        shop_id=orm_rent.shop_id,
        month=orm_rent.month,
        year=orm_rent.year,
        amount=_money(orm_rent.amount),
        paid_amount=_money(orm_rent.paid_amount),
        pending_amount=_money(orm_rent.pending_amount),
        status=orm_rent.status,
        payment_date=orm_rent.payment_date,
        notes=orm_rent.notes,
        created_at=orm_rent.created_at,
    )
