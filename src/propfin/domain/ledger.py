"""Ledger primitives shared by rent periods and balances.

A rent period carries ``amount`` (fixed rent due), ``paid_amount``,
``pending_amount`` and ``status``. The last two are always derived from the
first two by :func:`recompute`; nothing else may set them.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from propfin.domain.entities import (
    EXPENSE,
    INCOME,
    STATUS_PAID,
    STATUS_PENDING,
)
from propfin.domain.errors import (
    AmountExceedsRentDueError,
    InvalidAmountError,
    InvalidTransactionTypeError,
)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str]


def quantize(value: Number) -> Decimal:
    """Round a money value to two fractional digits."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def recompute(amount: Number, paid_amount: Number) -> tuple[Decimal, str]:
    """Derive ``(pending_amount, status)`` from ``amount`` and ``paid_amount``."""
    pending = max(quantize(amount) - quantize(paid_amount), ZERO)
    status = STATUS_PAID if pending == ZERO else STATUS_PENDING
    return pending, status


def require_positive(amount: Number, what: str = "Amount") -> Decimal:
    """Return ``amount`` quantized, or raise InvalidAmountError if it is not > 0."""
    try:
        value = quantize(amount)
    except ArithmeticError:
        raise InvalidAmountError(f"{what} must be a number, got {amount!r}")
    if value <= ZERO:
        raise InvalidAmountError(f"{what} must be greater than zero, got {value}")
    return value


def add_payment(amount: Number, paid_amount: Number, increment: Number) -> tuple[Decimal, Decimal, str]:
    """Apply a payment to a period.

    Returns:
        ``(new_paid, pending, status)``

    Raises:
        InvalidAmountError: If ``increment`` is not positive
        AmountExceedsRentDueError: If the period would be overpaid
    """
    increment = require_positive(increment, "Paid amount")
    amount = quantize(amount)
    new_paid = quantize(paid_amount) + increment
    if new_paid > amount:
        raise AmountExceedsRentDueError(
            f"Payment of {increment} exceeds rent due: due {amount}, "
            f"already paid {quantize(paid_amount)}"
        )
    pending, status = recompute(amount, new_paid)
    return new_paid, pending, status


def reverse_payment(amount: Number, paid_amount: Number, decrement: Number) -> tuple[Decimal, Decimal, str]:
    """Take a payment back off a period, never going below zero paid."""
    new_paid = max(quantize(paid_amount) - quantize(decrement), ZERO)
    pending, status = recompute(amount, new_paid)
    return new_paid, pending, status


def signed_amount(transaction_type: str, amount: Number) -> Decimal:
    """Balance effect of a transaction: income adds, expense subtracts."""
    if transaction_type == INCOME:
        return quantize(amount)
    if transaction_type == EXPENSE:
        return -quantize(amount)
    raise InvalidTransactionTypeError(
        f"Invalid transaction type '{transaction_type}': expected income or expense"
    )
