"""Buildings, tenants and shops, including the shop allocation lifecycle."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional

from propfin.database.base import Database
from propfin.domain.accrual import RentAccrualService
from propfin.domain.cascade import CascadeService
from propfin.domain.entities import Building, Shop, Tenant
from propfin.domain.errors import (
    InvalidAmountError,
    NotFoundError,
    ValidationError,
    entity_not_found,
)
from propfin.domain.ledger import ZERO, quantize
from propfin.domain.periods import normalize_allocation_date
from propfin.utils.date_parser import DateLike, utc_now

logger = logging.getLogger(__name__)

TENANT_FIELDS = ("name", "phone", "email", "address", "id_number")
BUILDING_FIELDS = ("name", "address", "total_shops", "is_active")
SHOP_FIELDS = (
    "building_id",
    "shop_number",
    "name",
    "monthly_rent",
    "advance",
    "is_advance_paid",
    "is_active",
    "tenant_id",
    "allocated_at",
)


def _money(value, what: str) -> Decimal:
    try:
        value = quantize(value)
    except ArithmeticError:
        raise InvalidAmountError(f"{what} must be a number, got {value!r}")
    if value < ZERO:
        raise InvalidAmountError(f"{what} cannot be negative, got {value}")
    return value


class PropertyService:
    """Service for buildings, tenants and shops."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        """Initialize property service.

        Args:
            db: Database instance
            clock: Source of the current time (aware UTC)
        """
        self.db = db
        self.accrual = RentAccrualService(db, clock)
        self.cascade = CascadeService(db)

    # Buildings
    def get_building(self, building_id: int, user_id: int) -> Building:
        building = self.db.get_building(building_id)
        if building is None or building.user_id != user_id:
            raise NotFoundError(entity_not_found("Building", building_id))
        return building

    def create_building(
        self, user_id: int, name: str, address: Optional[str] = None, total_shops: int = 0
    ) -> int:
        if not name.strip():
            raise ValidationError("Building name cannot be empty")
        return self.db.create_building(
            user_id=user_id, name=name.strip(), address=address, total_shops=total_shops
        )

    def update_building(self, building_id: int, user_id: int, **fields: Any) -> None:
        self.get_building(building_id, user_id)
        unknown = set(fields) - set(BUILDING_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update building fields: {', '.join(sorted(unknown))}")
        self.db.update_building(building_id, **fields)

    def list_buildings(self, user_id: int) -> list[Building]:
        return self.db.list_buildings(user_id)

    def delete_building(self, building_id: int, user_id: int) -> None:
        self.cascade.delete_building(building_id, user_id)

    # Tenants
    def get_tenant(self, tenant_id: int, user_id: int) -> Tenant:
        tenant = self.db.get_tenant(tenant_id)
        if tenant is None or tenant.user_id != user_id:
            raise NotFoundError(entity_not_found("Tenant", tenant_id))
        return tenant

    def create_tenant(self, user_id: int, name: str, **contact: Any) -> int:
        if not name.strip():
            raise ValidationError("Tenant name cannot be empty")
        unknown = set(contact) - set(TENANT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown tenant fields: {', '.join(sorted(unknown))}")
        return self.db.create_tenant(user_id=user_id, name=name.strip(), **contact)

    def update_tenant(self, tenant_id: int, user_id: int, **contact: Any) -> None:
        """Update contact fields."""
        self.get_tenant(tenant_id, user_id)
        unknown = set(contact) - set(TENANT_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update tenant fields: {', '.join(sorted(unknown))}")
        self.db.update_tenant(tenant_id, **contact)

    def list_tenants(self, user_id: int) -> list[Tenant]:
        return self.db.list_tenants(user_id)

    def delete_tenant(self, tenant_id: int, user_id: int) -> None:
        self.cascade.delete_tenant(tenant_id, user_id)

    # Shops
    def get_shop(self, shop_id: int, user_id: int) -> Shop:
        shop = self.db.get_shop(shop_id)
        if shop is None or shop.user_id != user_id:
            raise NotFoundError(entity_not_found("Shop", shop_id))
        return shop

    def list_shops(self, user_id: int, building_id: Optional[int] = None) -> list[Shop]:
        return self.db.list_shops(user_id=user_id, building_id=building_id)

    def _allocation(
        self, tenant_id: Optional[int], allocated_at: Optional[DateLike], today: date
    ) -> tuple[Optional[date], bool]:
        """Normalize ``(allocated_at, is_occupied)`` for a tenant assignment."""
        if tenant_id is None:
            return None, False
        day = normalize_allocation_date(allocated_at) if allocated_at is not None else today
        return day, day <= today

    def create_shop(
        self,
        user_id: int,
        building_id: int,
        shop_number: str,
        monthly_rent: Decimal,
        name: Optional[str] = None,
        advance: Decimal = ZERO,
        tenant_id: Optional[int] = None,
        allocated_at: Optional[DateLike] = None,
        is_advance_paid: bool = False,
    ) -> int:
        """Create a shop, optionally allocated to a tenant.

        With a tenant, rent periods from the allocation month up to last month
        are accrued in the same unit of work.

        Returns:
            Shop ID

        Raises:
            NotFoundError: If the building or tenant is not the user's
            ValidationError: If the allocation date doesn't parse
            InvalidAmountError: If rent or advance is negative
        """
        self.get_building(building_id, user_id)
        if tenant_id is not None:
            self.get_tenant(tenant_id, user_id)
        monthly_rent = _money(monthly_rent, "Monthly rent")
        advance = _money(advance, "Advance")
        today = self.accrual.today()
        allocated_day, occupied = self._allocation(tenant_id, allocated_at, today)

        with self.db.atomic():
            shop_id = self.db.create_shop(
                user_id=user_id,
                building_id=building_id,
                shop_number=shop_number,
                monthly_rent=monthly_rent,
                name=name,
                advance=advance,
                tenant_id=tenant_id,
                allocated_at=allocated_day,
                is_occupied=occupied,
                is_advance_paid=is_advance_paid if tenant_id is not None else False,
            )
            if tenant_id is not None:
                self.db.create_tenant_shop(tenant_id, shop_id, allocated_day)
                self.accrual.accrue_shop(self.db.get_shop(shop_id), today)

        logger.info("Created shop %s in building %s", shop_id, building_id)
        return shop_id

    def update_shop(self, shop_id: int, user_id: int, **changes: Any) -> Shop:
        """Update a shop and keep its allocation and rent ledger consistent.

        Clearing ``tenant_id`` clears the allocation date and the advance flag.
        A new tenant without a date is allocated today. Whenever the tenant or
        allocation date changes and the shop stays allocated, periods before
        the allocation month are removed and accrual re-runs.

        Returns:
            The updated shop
        """
        unknown = set(changes) - set(SHOP_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update shop fields: {', '.join(sorted(unknown))}")
        shop = self.get_shop(shop_id, user_id)
        today = self.accrual.today()

        fields = dict(changes)
        if "building_id" in fields:
            self.get_building(fields["building_id"], user_id)
        if "monthly_rent" in fields:
            fields["monthly_rent"] = _money(fields["monthly_rent"], "Monthly rent")
        if "advance" in fields:
            fields["advance"] = _money(fields["advance"], "Advance")

        tenant_id = fields.get("tenant_id", shop.tenant_id)
        tenant_changed = tenant_id != shop.tenant_id
        allocation_changed = "tenant_id" in fields or "allocated_at" in fields
        if tenant_changed and tenant_id is not None:
            self.get_tenant(tenant_id, user_id)

        if allocation_changed:
            requested = fields.get("allocated_at")
            if requested is None and not tenant_changed and "allocated_at" not in fields:
                requested = shop.allocated_at
            allocated_day, occupied = self._allocation(tenant_id, requested, today)
            fields["allocated_at"] = allocated_day
            fields["is_occupied"] = occupied
            if tenant_changed and "is_advance_paid" not in fields:
                fields["is_advance_paid"] = False
        if tenant_id is None:
            fields["is_advance_paid"] = False

        with self.db.atomic():
            self.db.update_shop(shop_id, **fields)
            if tenant_changed:
                self.db.close_tenant_shops(shop_id, today)
                if tenant_id is not None:
                    self.db.create_tenant_shop(tenant_id, shop_id, fields["allocated_at"])
            updated = self.db.get_shop(shop_id)
            if allocation_changed and updated.tenant_id is not None:
                self.accrual.reaccrue_shop(updated, today)

        logger.info("Updated shop %s: %s", shop_id, ", ".join(sorted(changes)))
        return updated

    def delete_shop(self, shop_id: int, user_id: int) -> None:
        self.cascade.delete_shop(shop_id, user_id)
