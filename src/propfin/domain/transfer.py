"""Transfer domain service."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from propfin.database.base import Database
from propfin.domain.balance import adjust_balance
from propfin.domain.entities import Transfer
from propfin.domain.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    account_not_found,
    insufficient_balance,
)
from propfin.domain.ledger import require_positive
from propfin.utils.date_parser import utc_now

logger = logging.getLogger(__name__)


class TransferService:
    """Service for moving money between a user's own accounts."""

    def __init__(self, db: Database, clock: Callable[[], datetime] = utc_now):
        self.db = db
        self.clock = clock

    def create_transfer(
        self,
        user_id: int,
        from_account_id: int,
        to_account_id: int,
        amount: Decimal,
        description: Optional[str] = None,
        transfer_date: Optional[datetime] = None,
    ) -> int:
        """Move ``amount`` from one account to another.

        Returns:
            Transfer ID

        Raises:
            ValidationError: If both sides are the same account
            InvalidAmountError: If amount is not positive
            AccountNotFoundError: If either account is missing or not the user's
            InsufficientBalanceError: If the source balance is below amount
        """
        if from_account_id == to_account_id:
            raise ValidationError("Cannot transfer to the same account")
        amount = require_positive(amount)

        with self.db.atomic():
            # Lock in id order so two opposite transfers can't deadlock
            accounts = {}
            for account_id in sorted((from_account_id, to_account_id)):
                account = self.db.get_account(account_id, for_update=True)
                if account is None or account.user_id != user_id:
                    raise AccountNotFoundError(account_not_found(account_id))
                accounts[account_id] = account

            source = accounts[from_account_id]
            if source.current_balance < amount:
                raise InsufficientBalanceError(
                    insufficient_balance(from_account_id, source.current_balance, amount)
                )

            adjust_balance(self.db, from_account_id, user_id, -amount)
            adjust_balance(self.db, to_account_id, user_id, amount)
            transfer_id = self.db.create_transfer(
                user_id=user_id,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                description=description,
                transfer_date=transfer_date or self.clock(),
            )

        logger.info(
            "Transferred %s from account %s to %s (transfer %s)",
            amount, from_account_id, to_account_id, transfer_id,
        )
        return transfer_id

    def delete_transfer(self, transfer_id: int, user_id: int) -> None:
        """Delete a transfer and restore both balances.

        The reversal never checks balances; it puts back a state that existed.

        Raises:
            NotFoundError: If the transfer doesn't exist
            UnauthorizedError: If it belongs to another user
        """
        transfer = self.db.get_transfer(transfer_id)
        if transfer is None:
            raise NotFoundError(f"Transfer {transfer_id} not found")
        if transfer.user_id != user_id:
            raise UnauthorizedError(f"Transfer {transfer_id} does not belong to user {user_id}")

        with self.db.atomic():
            adjust_balance(self.db, transfer.from_account_id, user_id, transfer.amount)
            adjust_balance(self.db, transfer.to_account_id, user_id, -transfer.amount)
            self.db.delete_transfer(transfer_id)

        logger.info("Deleted transfer %s, restored %s", transfer_id, transfer.amount)

    def list_transfers(self, user_id: int, account_id: Optional[int] = None) -> list[Transfer]:
        return self.db.list_transfers(user_id=user_id, account_id=account_id)
