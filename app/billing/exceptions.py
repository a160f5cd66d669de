"""
Billing-specific exceptions for debt generation and balance operations.

This module provides a hierarchy of exceptions for billing operations,
inheriting from the core exception base class for consistent error payloads.

Exception Hierarchy:
    BillingError (base)
    ├── NoBillingGroup - Student has no enrollment to bill against (skip)
    ├── AlreadyGenerated - Debt already exists for (student, period) (skip, also a ConflictError)
    ├── InsufficientBalance - Debit exceeds available balance (contract violation)
    ├── NegativeBalance - Stored balance is negative (invalid data)
    ├── InvalidAmount - Money amount is malformed or out of range
    ├── InvalidPeriod - Billing period is not a valid YYYY-MM value
    ├── StudentNotFound - Student lookup failures (also a NotFoundError)
    └── PersistenceFailure - Storage write failed mid-transaction

Skip vs. failure:
    NoBillingGroup and AlreadyGenerated are reported as skips by the
    generation run. Every other BillingError marks the student's unit of
    work as failed; the run continues with the next student.

Usage:
    from billing.exceptions import InsufficientBalance

    if amount > student.balance:
        raise InsufficientBalance(
            student.id,
            required=amount,
            available=student.balance,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError

if TYPE_CHECKING:
    from decimal import Decimal
    from typing import Any


class BillingError(BaseApplicationError):
    """
    Base exception for all billing operations.

    Example:
        try:
            ledger.debit(student_id, amount)
        except BillingError as e:
            logger.error(f"Billing operation failed: {e}")
    """

    default_error_code: str = "BILLING_ERROR"


class NoBillingGroup(BillingError):
    """Raised when a student has no enrollment to bill against."""

    default_error_code: str = "NO_BILLING_GROUP"


class AlreadyGenerated(BillingError, ConflictError):
    """
    Raised when a debt already exists for a (student, period) pair.

    Raised both by the fast-path existence check and when the database
    unique constraint rejects a concurrent insert. The constraint is
    the authoritative signal.
    """

    default_error_code: str = "ALREADY_GENERATED"


class InsufficientBalance(BillingError):
    """
    Raised when a debit exceeds the student's available balance.

    The debt generation run never debits more than the balance it read
    under lock, so this indicates a programming error rather than a
    user-facing condition.

    Attributes:
        student_id: The student whose balance was insufficient
        required: The amount that was requested
        available: The balance that was available
    """

    default_error_code: str = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        student_id: int,
        required: Decimal,
        available: Decimal,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize with student details and amounts.

        Args:
            student_id: ID of the student with insufficient balance
            required: Amount requested
            available: Amount available
            error_code: Optional custom error code
            details: Optional additional error context
        """
        self.student_id = student_id
        self.required = required
        self.available = available

        message = (
            f"Student {student_id} has insufficient balance: "
            f"required {required}, available {available}"
        )

        full_details = {
            "student_id": student_id,
            "required": str(required),
            "available": str(available),
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=message,
            error_code=error_code,
            details=full_details,
        )


class NegativeBalance(BillingError):
    """
    Raised when a student's stored balance is negative.

    Settlement assumes a non-negative balance. A negative value means the
    data was written outside the ledger and must be corrected by hand.
    """

    default_error_code: str = "NEGATIVE_BALANCE"

    def __init__(self, student_id: int | None, balance: Decimal):
        self.student_id = student_id
        self.balance = balance
        super().__init__(
            message=f"Student {student_id} has a negative balance: {balance}",
            details={"student_id": student_id, "balance": str(balance)},
        )


class InvalidAmount(BillingError):
    """Raised when a money amount is malformed or out of range."""

    default_error_code: str = "INVALID_AMOUNT"


class InvalidPeriod(BillingError):
    """Raised when a billing period is not a valid YYYY-MM value."""

    default_error_code: str = "INVALID_PERIOD"


class StudentNotFound(BillingError, NotFoundError):
    """Raised when a student cannot be found."""

    default_error_code: str = "STUDENT_NOT_FOUND"


class PersistenceFailure(BillingError):
    """
    Raised when a storage write fails mid-transaction.

    Wraps the underlying database error. The student's transaction has
    been rolled back when this is reported.
    """

    default_error_code: str = "PERSISTENCE_FAILURE"
