"""Balance mutator.

Every change to ``BankAccount.current_balance`` goes through this module. Each
helper locks the account row, writes the new balance and writes or deletes the
row that caused it inside one ``atomic()`` block, so a balance is never
updated without its transaction (or the reverse).
"""

import logging
from datetime import datetime
from decimal import Decimal

from propfin.database.base import Database
from propfin.domain.entities import CONTEXTS, Transaction
from propfin.domain.errors import (
    AccountNotFoundError,
    ValidationError,
    account_not_found,
)
from propfin.domain.ledger import quantize, require_positive, signed_amount

logger = logging.getLogger(__name__)


def adjust_balance(db: Database, account_id: int, user_id: int, delta: Decimal) -> Decimal:
    """Add ``delta`` to an account balance under a row lock.

    Must run inside ``db.atomic()``.

    Returns:
        The new balance

    Raises:
        AccountNotFoundError: If the account is missing or owned by someone else
    """
    account = db.get_account(account_id, for_update=True)
    if account is None or account.user_id != user_id:
        raise AccountNotFoundError(account_not_found(account_id))
    new_balance = quantize(account.current_balance + delta)
    db.set_account_balance(account_id, new_balance)
    logger.info(
        "Account %s balance %s -> %s", account_id, account.current_balance, new_balance
    )
    return new_balance


def record_transaction(
    db: Database,
    user_id: int,
    account_id: int,
    type: str,
    amount: Decimal,
    description: str,
    context: str,
    transaction_date: datetime,
    **fields,
) -> int:
    """Apply a transaction's balance effect and insert it.

    Args:
        db: Database instance
        user_id: Owner of the account and the new row
        account_id: Account whose balance moves
        type: ``income`` or ``expense``
        amount: Positive magnitude
        description: Free text
        context: ``personal`` or ``property``
        transaction_date: When the money moved
        **fields: Optional references (category_id, tenant_id, shop_id,
            building_id) plus notes, payment_kind, rent_month, rent_year

    Returns:
        Transaction ID

    Raises:
        InvalidTransactionTypeError: If type is not income/expense
        InvalidAmountError: If amount is not positive
        ValidationError: If context is unknown
        AccountNotFoundError: If the account does not resolve for the user
    """
    amount = require_positive(amount)
    delta = signed_amount(type, amount)
    if context not in CONTEXTS:
        raise ValidationError(f"Invalid context '{context}': expected personal or property")

    with db.atomic():
        adjust_balance(db, account_id, user_id, delta)
        return db.create_transaction(
            user_id=user_id,
            account_id=account_id,
            description=description,
            amount=amount,
            type=type,
            context=context,
            transaction_date=transaction_date,
            **fields,
        )


def unrecord_transaction(db: Database, transaction: Transaction) -> Decimal:
    """Reverse a transaction's balance effect and delete it.

    Must run inside ``db.atomic()``.

    Returns:
        The account's new balance
    """
    if transaction.account_id is None:
        raise ValidationError(
            f"Transaction {transaction.id} has no account; its balance effect cannot be reversed"
        )
    new_balance = adjust_balance(
        db,
        transaction.account_id,
        transaction.user_id,
        -signed_amount(transaction.type, transaction.amount),
    )
    db.delete_transaction(transaction.id)
    return new_balance
