"""Account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from propfin.database.base import Database
from propfin.domain.cascade import CascadeService
from propfin.domain.entities import ACCOUNT_TYPES, BankAccount
from propfin.domain.errors import (
    AccountNotFoundError,
    InvalidAmountError,
    ValidationError,
    account_not_found,
)
from propfin.domain.ledger import ZERO, quantize, signed_amount

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.cascade = CascadeService(db)

    def _validate_type(self, account_type: str) -> None:
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(
                f"Invalid account type '{account_type}': expected one of {', '.join(ACCOUNT_TYPES)}"
            )

    def create_account(
        self,
        user_id: int,
        name: str,
        account_type: str,
        initial_balance: Decimal = ZERO,
        account_number: str = "",
    ) -> int:
        """Create a new account.

        Args:
            user_id: Owner
            name: Account name
            account_type: One of ACCOUNT_TYPES
            initial_balance: Opening balance; also the starting current balance
            account_number: Optional bank account number

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty, the type unknown, or the
                name already exists for the user
        """
        name = name.strip()
        if not name:
            raise ValidationError("Account name cannot be empty")
        self._validate_type(account_type)
        try:
            initial_balance = quantize(initial_balance)
        except ArithmeticError:
            raise InvalidAmountError(f"Invalid initial balance {initial_balance!r}")

        for acc in self.db.list_accounts(user_id):
            if acc.name == name:
                raise ValidationError(f"Account with name '{name}' already exists")

        account_id = self.db.create_account(
            user_id=user_id,
            name=name,
            account_type=account_type,
            initial_balance=initial_balance,
            account_number=account_number,
        )
        logger.info("Created account %s '%s' with balance %s", account_id, name, initial_balance)
        return account_id

    def get_account(self, account_id: int, user_id: int) -> BankAccount:
        """Get one of the user's accounts.

        Raises:
            AccountNotFoundError: If missing or owned by someone else
        """
        account = self.db.get_account(account_id)
        if account is None or account.user_id != user_id:
            raise AccountNotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, user_id: int) -> list[BankAccount]:
        return self.db.list_accounts(user_id)

    def update_account(
        self,
        account_id: int,
        user_id: int,
        name: Optional[str] = None,
        account_number: Optional[str] = None,
        account_type: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> None:
        """Update descriptive fields. Balances can only move through transactions."""
        self.get_account(account_id, user_id)
        fields = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Account name cannot be empty")
            fields["name"] = name.strip()
        if account_number is not None:
            fields["account_number"] = account_number
        if account_type is not None:
            self._validate_type(account_type)
            fields["account_type"] = account_type
        if is_active is not None:
            fields["is_active"] = is_active
        if fields:
            self.db.update_account(account_id, **fields)

    def delete_account(self, account_id: int, user_id: int) -> None:
        """Delete an account together with its transactions and transfers."""
        self.cascade.delete_account(account_id, user_id)

    def recompute_balance(self, account_id: int, user_id: int) -> Decimal:
        """Derive the balance from the account's history.

        ``initial + income - expense - transfers out + transfers in``. Used to
        verify the stored ``current_balance``.
        """
        account = self.get_account(account_id, user_id)
        balance = account.initial_balance
        for txn in self.db.list_transactions(account_id=account_id):
            balance += signed_amount(txn.type, txn.amount)
        for transfer in self.db.list_transfers(account_id=account_id):
            if transfer.from_account_id == account_id:
                balance -= transfer.amount
            if transfer.to_account_id == account_id:
                balance += transfer.amount
        return quantize(balance)
