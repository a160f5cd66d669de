"""
Settlement of a monthly fee against a student's balance.

Pure functions, no database access. Money is handled as Decimal quantized
to two places with ROUND_HALF_UP; floats are rejected.

Cases:
    balance >= fee      → paid in full, nothing outstanding
    0 < balance < fee   → partially paid, fee - balance outstanding
    balance == 0        → unpaid, full fee outstanding

Usage:
    from billing.settlement import compute_settlement

    settlement = compute_settlement(Decimal("150000"), Decimal("60000"))
    settlement.paid_amount   # Decimal("60000.00")
    settlement.outstanding   # Decimal("90000.00")
    settlement.status        # DebtStatus.PARTIAL
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing.exceptions import InvalidAmount, NegativeBalance
from billing.models import DebtStatus
from billing.types import Settlement

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Convert a value to a two-place Decimal.

    Raises:
        InvalidAmount: For floats, non-numeric input and non-finite values
    """
    if isinstance(value, (float, bool)):
        raise InvalidAmount(
            f"Money amounts must not be {type(value).__name__}: {value!r}",
            details={"amount": repr(value)},
        )
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(
            f"Invalid money amount: {value!r}",
            details={"amount": repr(value)},
        )
    if not amount.is_finite():
        raise InvalidAmount(
            f"Invalid money amount: {value!r}",
            details={"amount": repr(value)},
        )
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_settlement(
    fee: Decimal,
    balance: Decimal,
    student_id: int | None = None,
) -> Settlement:
    """
    Apply as much of the balance as possible to the fee.

    Args:
        fee: Monthly fee of the billing group (non-negative)
        balance: Student's current balance (non-negative)
        student_id: Used only for error context

    Returns:
        Settlement with paid_amount + outstanding == fee

    Raises:
        NegativeBalance: If balance is negative
        InvalidAmount: If fee is negative
    """
    fee = to_money(fee)
    balance = to_money(balance)

    if fee < 0:
        raise InvalidAmount(
            f"Monthly fee must not be negative, got {fee}",
            details={"fee": str(fee)},
        )
    if balance < 0:
        raise NegativeBalance(student_id, balance)

    if balance >= fee:
        return Settlement(
            fee=fee,
            paid_amount=fee,
            outstanding=ZERO,
            status=DebtStatus.PAID,
            is_paid=True,
        )

    if balance > 0:
        return Settlement(
            fee=fee,
            paid_amount=balance,
            outstanding=fee - balance,
            status=DebtStatus.PARTIAL,
            is_paid=False,
        )

    return Settlement(
        fee=fee,
        paid_amount=ZERO,
        outstanding=fee,
        status=DebtStatus.UNPAID,
        is_paid=False,
    )
