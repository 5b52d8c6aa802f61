"""Transaction domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from propfin.database.base import Database
from propfin.domain.balance import record_transaction, unrecord_transaction
from propfin.domain.entities import (
    INCOME,
    PAYMENT_KIND_ADVANCE,
    PAYMENT_KIND_RENT,
    PERSONAL,
    PROPERTY,
    Transaction as TransactionEntity,
)
from propfin.domain.errors import (
    NotFoundError,
    TransactionNotFoundError,
    entity_not_found,
    transaction_not_found,
)
from propfin.domain.periods import Period
from propfin.domain.rent import RentPaymentService
from propfin.utils.date_parser import utc_now

logger = logging.getLogger(__name__)


def rent_period_of(txn: TransactionEntity) -> Optional[Period]:
    """Rent period a transaction paid, or None if it is not a rent payment.

    Rows recorded by rent collection carry the period explicitly. Older or
    imported rows only qualify as property income linked to a tenant and a
    shop, and then the transaction date's month is used.
    """
    if txn.payment_kind == PAYMENT_KIND_ADVANCE:
        return None
    if txn.tenant_id is None or txn.shop_id is None:
        return None
    if txn.payment_kind == PAYMENT_KIND_RENT and txn.rent_month and txn.rent_year:
        return Period(txn.rent_year, txn.rent_month)
    if txn.type == INCOME and txn.context == PROPERTY and txn.transaction_date is not None:
        return Period.of(txn.transaction_date)
    return None


class TransactionService:
    """Service for managing transactions."""

    def __init__(
        self,
        db: Database,
        clock: Callable[[], datetime] = utc_now,
        rent_service: Optional[RentPaymentService] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            clock: Source of the current time (aware UTC)
            rent_service: Reconciler used when a rent payment is deleted
        """
        self.db = db
        self.clock = clock
        self.rent_service = rent_service or RentPaymentService(db, clock)

    def create_transaction(
        self,
        user_id: int,
        account_id: int,
        type: str,
        amount: Decimal,
        description: str,
        context: str = PERSONAL,
        transaction_date: Optional[datetime] = None,
        category_id: Optional[int] = None,
        tenant_id: Optional[int] = None,
        shop_id: Optional[int] = None,
        building_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a transaction and apply it to the account balance.

        Args:
            user_id: Acting user
            account_id: Account the money moves in or out of
            type: ``income`` or ``expense``
            amount: Positive amount
            description: Description
            context: ``personal`` or ``property``
            transaction_date: Defaults to now
            category_id: Optional category ID
            tenant_id: Optional tenant ID
            shop_id: Optional shop ID
            building_id: Optional building ID
            notes: Optional notes

        Returns:
            Transaction ID

        Raises:
            InvalidTransactionTypeError: If type is not income/expense
            InvalidAmountError: If amount is not positive
            AccountNotFoundError: If the account doesn't exist or isn't the user's
            NotFoundError: If a referenced category doesn't exist
        """
        if category_id is not None:
            category = self.db.get_category(category_id)
            if category is None or category.user_id != user_id:
                raise NotFoundError(entity_not_found("Category", category_id))

        transaction_id = record_transaction(
            self.db,
            user_id=user_id,
            account_id=account_id,
            type=type,
            amount=amount,
            description=description,
            context=context,
            transaction_date=transaction_date or self.clock(),
            category_id=category_id,
            tenant_id=tenant_id,
            shop_id=shop_id,
            building_id=building_id,
            notes=notes,
        )
        logger.info("Created %s transaction %s of %s on account %s", type, transaction_id, amount, account_id)
        return transaction_id

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: int, user_id: int) -> None:
        """Delete a transaction and reverse its balance effect.

        A deleted rent payment also comes off its rent period, and a deleted
        advance marks the shop's advance as unpaid again.

        Raises:
            TransactionNotFoundError: If missing or not owned by the user
            ValidationError: If the transaction has no account
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None or txn.user_id != user_id:
            raise TransactionNotFoundError(transaction_not_found(transaction_id))

        with self.db.atomic():
            unrecord_transaction(self.db, txn)

            period = rent_period_of(txn)
            if period is not None:
                self.rent_service.reverse_payment(
                    user_id, txn.tenant_id, txn.shop_id, period.month, period.year, txn.amount
                )
            elif txn.payment_kind == PAYMENT_KIND_ADVANCE and txn.shop_id is not None:
                if self.db.get_shop(txn.shop_id) is not None:
                    self.db.update_shop(txn.shop_id, is_advance_paid=False)

        logger.info("Deleted transaction %s", transaction_id)

    def list_transactions(
        self,
        user_id: int,
        context: Optional[str] = None,
        account_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[TransactionEntity]:
        """List a user's transactions, newest first."""
        return self.db.list_transactions(
            user_id=user_id, context=context, account_id=account_id, limit=limit
        )
