"""Tests for ledger primitives."""

from decimal import Decimal

import pytest

from propfin.domain.errors import (
    AmountExceedsRentDueError,
    BusinessRuleError,
    InvalidAmountError,
    InvalidTransactionTypeError,
)
from propfin.domain.ledger import (
    ZERO,
    add_payment,
    quantize,
    recompute,
    require_positive,
    reverse_payment,
    signed_amount,
)


def test_quantize_rounds_half_up():
    assert quantize("10.005") == Decimal("10.01")
    assert quantize("10.004") == Decimal("10.00")
    assert quantize(7) == Decimal("7.00")


def test_recompute_pending_and_status():
    assert recompute(Decimal("10000"), Decimal("6000")) == (Decimal("4000.00"), "pending")
    assert recompute(Decimal("10000"), Decimal("10000")) == (ZERO, "paid")


def test_recompute_never_negative():
    """Overpaid rows coming from old data clamp to zero pending."""
    pending, status = recompute(Decimal("100"), Decimal("150"))
    assert pending == ZERO
    assert status == "paid"


def test_recompute_zero_rent_is_paid():
    assert recompute(ZERO, ZERO) == (ZERO, "paid")


def test_add_payment_partial_then_full():
    paid, pending, status = add_payment(Decimal("10000"), ZERO, Decimal("6000"))
    assert (paid, pending, status) == (Decimal("6000.00"), Decimal("4000.00"), "pending")

    paid, pending, status = add_payment(Decimal("10000"), paid, Decimal("4000"))
    assert (paid, pending, status) == (Decimal("10000.00"), ZERO, "paid")


def test_add_payment_rejects_overpayment():
    with pytest.raises(AmountExceedsRentDueError):
        add_payment(Decimal("10000"), Decimal("6000"), Decimal("5000"))


def test_overpayment_is_a_business_rule_error():
    assert issubclass(AmountExceedsRentDueError, BusinessRuleError)


@pytest.mark.parametrize("increment", [Decimal("0"), Decimal("-5"), "abc"])
def test_add_payment_rejects_non_positive(increment):
    with pytest.raises(InvalidAmountError):
        add_payment(Decimal("10000"), ZERO, increment)


def test_reverse_payment_clamps_at_zero():
    paid, pending, status = reverse_payment(Decimal("10000"), Decimal("3000"), Decimal("5000"))
    assert paid == ZERO
    assert pending == Decimal("10000.00")
    assert status == "pending"


def test_reverse_payment_reopens_paid_period():
    paid, pending, status = reverse_payment(Decimal("10000"), Decimal("10000"), Decimal("4000"))
    assert (paid, pending, status) == (Decimal("6000.00"), Decimal("4000.00"), "pending")


def test_signed_amount():
    assert signed_amount("income", Decimal("250")) == Decimal("250.00")
    assert signed_amount("expense", Decimal("250")) == Decimal("-250.00")


def test_signed_amount_rejects_unknown_type():
    with pytest.raises(InvalidTransactionTypeError):
        signed_amount("refund", Decimal("1"))


def test_require_positive():
    assert require_positive("12.5") == Decimal("12.50")
    with pytest.raises(InvalidAmountError, match="greater than zero"):
        require_positive(0)
