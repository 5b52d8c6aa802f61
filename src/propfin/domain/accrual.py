"""Rent accrual generator."""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from propfin.database.base import Database
from propfin.domain.entities import RentPayment, Shop
from propfin.domain.ledger import ZERO, recompute
from propfin.domain.periods import Period, accrual_periods
from propfin.utils.date_parser import to_calendar_date, utc_now

logger = logging.getLogger(__name__)


class RentAccrualService:
    """Creates the rent-due record for every elapsed month of an allocation."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        """Initialize accrual service.

        Args:
            db: Database instance
            clock: Source of the current time (aware UTC)
        """
        self.db = db
        self.clock = clock

    def today(self) -> date:
        """Current UTC calendar day according to the clock."""
        return to_calendar_date(self.clock())

    def accrue_shop(self, shop: Shop, today: Optional[date] = None) -> list[RentPayment]:
        """Insert the missing rent periods for a shop's current allocation.

        Periods run from the allocation month through the last fully elapsed
        month. Existing periods are left untouched, so their ``amount`` keeps
        the rent that applied when they were first generated. The shop's
        ``is_occupied`` flag is brought in line with ``today``, which matters
        once a future allocation date has passed.

        Args:
            shop: Shop to accrue
            today: Reference day (defaults to the clock's UTC day)

        Returns:
            The newly created periods
        """
        if shop.tenant_id is None or shop.allocated_at is None:
            return []
        today = today or self.today()

        occupied = shop.allocated_at <= today
        pending, status = recompute(shop.monthly_rent, ZERO)
        created = []
        with self.db.atomic():
            if shop.is_occupied != occupied:
                self.db.update_shop(shop.id, is_occupied=occupied)
                logger.info("Shop %s occupied=%s as of %s", shop.id, occupied, today)
            for period in accrual_periods(shop.allocated_at, today):
                existing = self.db.find_rent_payment(
                    shop.user_id, shop.tenant_id, shop.id, period.month, period.year
                )
                if existing is not None:
                    continue
                rent_id = self.db.create_rent_payment(
                    user_id=shop.user_id,
                    tenant_id=shop.tenant_id,
                    shop_id=shop.id,
                    month=period.month,
                    year=period.year,
                    amount=shop.monthly_rent,
                    paid_amount=ZERO,
                    pending_amount=pending,
                    status=status,
                )
                logger.debug("Accrued %s for shop %s: %s", period, shop.id, shop.monthly_rent)
                created.append(self.db.get_rent_payment(rent_id))

        if created:
            logger.info(
                "Accrued %d rent periods for shop %s tenant %s",
                len(created), shop.id, shop.tenant_id,
            )
        return created

    def reaccrue_shop(self, shop: Shop, today: Optional[date] = None) -> list[RentPayment]:
        """Re-run accrual after the allocation date or tenant changed.

        Periods of this tenant and shop that fall before the allocation
        month are deleted first.
        """
        if shop.tenant_id is None or shop.allocated_at is None:
            return []
        start = Period.of(shop.allocated_at)
        with self.db.atomic():
            removed = self.db.delete_rent_payments(
                user_id=shop.user_id,
                tenant_id=shop.tenant_id,
                shop_id=shop.id,
                before=(start.year, start.month),
            )
            if removed:
                logger.info(
                    "Removed %d rent periods before %s for shop %s", removed, start, shop.id
                )
            return self.accrue_shop(shop, today)

    def sweep(self, today: Optional[date] = None) -> int:
        """Accrue every allocated shop of every user.

        Returns:
            Number of periods created
        """
        today = today or self.today()
        shops = self.db.list_shops(allocated_only=True)
        created = sum(len(self.accrue_shop(shop, today)) for shop in shops)
        logger.info("Accrual sweep for %s: %d shops, %d periods created", today, len(shops), created)
        return created
