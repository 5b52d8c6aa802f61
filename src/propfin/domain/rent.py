"""Rent payment reconciler."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from propfin.database.base import Database
from propfin.domain.balance import record_transaction
from propfin.domain.entities import (
    INCOME,
    PAYMENT_KIND_ADVANCE,
    PAYMENT_KIND_RENT,
    PROPERTY,
    RentPayment,
    Shop,
)
from propfin.domain.errors import (
    AmountExceedsRentDueError,
    BusinessRuleError,
    InvalidAmountError,
    NotFoundError,
    amount_exceeds_rent_due,
    entity_not_found,
)
from propfin.domain.ledger import (
    ZERO,
    add_payment,
    quantize,
    recompute,
    require_positive,
    reverse_payment as reverse_ledger_payment,
)
from propfin.domain.periods import Period, validate_period
from propfin.utils.date_parser import to_calendar_date, utc_now

logger = logging.getLogger(__name__)


class RentPaymentService:
    """Service that keeps rent periods in step with money received.

    Every write path goes through :mod:`propfin.domain.ledger`, so
    ``pending_amount`` and ``status`` always follow from ``amount`` and
    ``paid_amount``.
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        """Initialize rent payment service.

        Args:
            db: Database instance
            clock: Source of the current time (aware UTC)
        """
        self.db = db
        self.clock = clock

    def _owned_shop(self, user_id: int, shop_id: int) -> Shop:
        shop = self.db.get_shop(shop_id)
        if shop is None or shop.user_id != user_id:
            raise NotFoundError(entity_not_found("Shop", shop_id))
        return shop

    def _check_tenant(self, user_id: int, tenant_id: int) -> None:
        tenant = self.db.get_tenant(tenant_id)
        if tenant is None or tenant.user_id != user_id:
            raise NotFoundError(entity_not_found("Tenant", tenant_id))

    def _settle(
        self,
        existing: Optional[RentPayment],
        shop: Shop,
        month: int,
        year: int,
        amount_paid: Decimal,
        amount: Optional[Decimal],
    ) -> tuple[Decimal, Decimal, Decimal, str]:
        """Work out ``(due, paid, pending, status)`` after a payment."""
        if existing is not None:
            due, already_paid = existing.amount, existing.paid_amount
        else:
            due = quantize(amount) if amount is not None else shop.monthly_rent
            already_paid = ZERO
        try:
            paid, pending, status = add_payment(due, already_paid, amount_paid)
        except AmountExceedsRentDueError:
            raise AmountExceedsRentDueError(
                amount_exceeds_rent_due(month, year, due, already_paid, amount_paid)
            )
        return due, paid, pending, status

    def check_payment(
        self,
        user_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        amount_paid: Decimal,
        amount: Optional[Decimal] = None,
    ) -> tuple[Decimal, Decimal, str]:
        """Validate a payment without writing anything.

        Returns:
            ``(paid_amount, pending_amount, status)`` the period would have

        Raises:
            ValidationError: If month/year is impossible
            InvalidAmountError: If amount_paid is not positive
            NotFoundError: If shop or tenant is not the user's
            AmountExceedsRentDueError: If the period would be overpaid
        """
        validate_period(month, year)
        amount_paid = require_positive(amount_paid, "Paid amount")
        shop = self._owned_shop(user_id, shop_id)
        self._check_tenant(user_id, tenant_id)
        existing = self.db.find_rent_payment(user_id, tenant_id, shop_id, month, year)
        _, paid, pending, status = self._settle(existing, shop, month, year, amount_paid, amount)
        return paid, pending, status

    def apply_payment(
        self,
        user_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        amount_paid: Decimal,
        payment_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        amount: Optional[Decimal] = None,
    ) -> RentPayment:
        """Record a (possibly partial) payment against a rent period.

        Looks the period up by its natural key and increments ``paid_amount``.
        When no record exists yet, one is created with ``amount`` (or the
        shop's monthly rent) as the rent due.

        Args:
            user_id: Acting user
            tenant_id: Paying tenant
            shop_id: Shop the rent is for
            month: Period month (1-12)
            year: Period year
            amount_paid: Positive payment amount
            payment_date: When it was paid (defaults to now)
            notes: Replaces the period notes when given
            amount: Rent due, used only when the period is created here

        Returns:
            The updated rent period

        Raises:
            ValidationError: If month/year is impossible
            InvalidAmountError: If amount_paid is not positive
            NotFoundError: If shop or tenant is not the user's
            AmountExceedsRentDueError: If the period would be overpaid
        """
        validate_period(month, year)
        amount_paid = require_positive(amount_paid, "Paid amount")
        shop = self._owned_shop(user_id, shop_id)
        self._check_tenant(user_id, tenant_id)
        payment_date = payment_date or self.clock()

        with self.db.atomic():
            existing = self.db.find_rent_payment(
                user_id, tenant_id, shop_id, month, year, for_update=True
            )
            due, paid, pending, status = self._settle(
                existing, shop, month, year, amount_paid, amount
            )
            if existing is not None:
                fields = dict(
                    paid_amount=paid,
                    pending_amount=pending,
                    status=status,
                    payment_date=payment_date,
                )
                if notes is not None:
                    fields["notes"] = notes
                self.db.update_rent_payment(existing.id, **fields)
                rent_id = existing.id
            else:
                rent_id = self.db.create_rent_payment(
                    user_id=user_id,
                    tenant_id=tenant_id,
                    shop_id=shop_id,
                    month=month,
                    year=year,
                    amount=due,
                    paid_amount=paid,
                    pending_amount=pending,
                    status=status,
                    payment_date=payment_date,
                    notes=notes,
                )

        logger.info(
            "Rent %02d/%s shop %s tenant %s: paid %s, pending %s (%s)",
            month, year, shop_id, tenant_id, paid, pending, status,
        )
        return self.db.get_rent_payment(rent_id)

    def collect_rent(
        self,
        user_id: int,
        account_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        amount_paid: Decimal,
        payment_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> tuple[RentPayment, int]:
        """Apply a rent payment and deposit it into an account in one unit.

        The deposit is a property income transaction tagged with the period,
        so deleting it later reverses exactly this payment.

        Returns:
            ``(rent period, transaction id)``
        """
        shop = self._owned_shop(user_id, shop_id)
        payment_date = payment_date or self.clock()
        with self.db.atomic():
            rent = self.apply_payment(
                user_id, tenant_id, shop_id, month, year, amount_paid,
                payment_date=payment_date, notes=notes,
            )
            transaction_id = record_transaction(
                self.db,
                user_id=user_id,
                account_id=account_id,
                type=INCOME,
                amount=amount_paid,
                description=description or f"Rent {month:02d}/{year} - shop {shop.shop_number}",
                context=PROPERTY,
                transaction_date=payment_date,
                category_id=category_id,
                tenant_id=tenant_id,
                shop_id=shop_id,
                building_id=shop.building_id,
                notes=notes,
                payment_kind=PAYMENT_KIND_RENT,
                rent_month=month,
                rent_year=year,
            )
        return rent, transaction_id

    def collect_advance(
        self,
        user_id: int,
        account_id: int,
        shop_id: int,
        payment_date: Optional[datetime] = None,
        description: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> int:
        """Deposit a shop's advance and mark it paid.

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the shop is not the user's
            BusinessRuleError: If the shop has no tenant or the advance is already paid
            InvalidAmountError: If the shop's advance is zero
        """
        shop = self._owned_shop(user_id, shop_id)
        if shop.tenant_id is None:
            raise BusinessRuleError(f"Shop {shop_id} has no tenant to collect an advance from")
        if shop.is_advance_paid:
            raise BusinessRuleError(f"Advance for shop {shop_id} is already paid")
        if shop.advance <= ZERO:
            raise InvalidAmountError(f"Shop {shop_id} has no advance to collect")

        with self.db.atomic():
            transaction_id = record_transaction(
                self.db,
                user_id=user_id,
                account_id=account_id,
                type=INCOME,
                amount=shop.advance,
                description=description or f"Advance - shop {shop.shop_number}",
                context=PROPERTY,
                transaction_date=payment_date or self.clock(),
                category_id=category_id,
                tenant_id=shop.tenant_id,
                shop_id=shop_id,
                building_id=shop.building_id,
                payment_kind=PAYMENT_KIND_ADVANCE,
            )
            self.db.update_shop(shop_id, is_advance_paid=True)
        logger.info("Advance %s collected for shop %s", shop.advance, shop_id)
        return transaction_id

    def reverse_payment(
        self,
        user_id: int,
        tenant_id: int,
        shop_id: int,
        month: int,
        year: int,
        amount: Decimal,
    ) -> Optional[RentPayment]:
        """Take ``amount`` back off a period's paid amount, stopping at zero.

        Returns:
            The updated period, or None when no such period exists
        """
        amount = require_positive(amount)
        with self.db.atomic():
            existing = self.db.find_rent_payment(
                user_id, tenant_id, shop_id, month, year, for_update=True
            )
            if existing is None:
                logger.debug(
                    "No rent period %02d/%s for shop %s tenant %s to reverse",
                    month, year, shop_id, tenant_id,
                )
                return None
            paid, pending, status = reverse_ledger_payment(
                existing.amount, existing.paid_amount, amount
            )
            self.db.update_rent_payment(
                existing.id, paid_amount=paid, pending_amount=pending, status=status
            )
        logger.info(
            "Reversed %s from rent %02d/%s shop %s: paid %s, pending %s",
            amount, month, year, shop_id, paid, pending,
        )
        return self.db.get_rent_payment(existing.id)

    def recalculate_all(self, user_id: int) -> int:
        """Recompute pending amount and status for every period of a user.

        Rows sharing a natural key are treated as one period: their paid
        amounts are summed and checked against the first row's ``amount``.

        Returns:
            Number of rows written
        """
        groups: dict[tuple[int, int, int, int], list[RentPayment]] = {}
        for rent in self.db.list_rent_payments(user_id=user_id):
            groups.setdefault(rent.period_key, []).append(rent)

        written = 0
        with self.db.atomic():
            for rows in groups.values():
                total_paid = sum((r.paid_amount for r in rows), ZERO)
                pending, status = recompute(rows[0].amount, total_paid)
                for rent in rows:
                    self.db.update_rent_payment(
                        rent.id, pending_amount=pending, status=status
                    )
                    written += 1
        logger.info("Recalculated %d rent periods for user %s", written, user_id)
        return written

    def delete_rent_payment(self, rent_payment_id: int, user_id: int) -> None:
        """Delete a rent period, e.g. one settled outside the ledger.

        Raises:
            NotFoundError: If missing or not owned by the user
        """
        rent = self.db.get_rent_payment(rent_payment_id)
        if rent is None or rent.user_id != user_id:
            raise NotFoundError(entity_not_found("Rent payment", rent_payment_id))
        self.db.delete_rent_payment(rent_payment_id)
        logger.info("Deleted rent period %s", rent_payment_id)

    def list_rent_payments(
        self,
        user_id: int,
        tenant_id: Optional[int] = None,
        shop_id: Optional[int] = None,
        year: Optional[int] = None,
    ) -> list[RentPayment]:
        return self.db.list_rent_payments(
            user_id=user_id, tenant_id=tenant_id, shop_id=shop_id, year=year
        )

    def pending_rent(self, user_id: int, today: Optional[date] = None) -> Decimal:
        """Total rent still owed for months before the current one."""
        current = Period.of(today or to_calendar_date(self.clock()))
        return sum(
            (
                r.pending_amount
                for r in self.db.list_rent_payments(user_id=user_id)
                if Period(r.year, r.month) < current
            ),
            ZERO,
        )
