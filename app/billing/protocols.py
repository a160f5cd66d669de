"""
Protocol definitions for the collaborators of debt generation.

The generation engine depends on these interfaces rather than on the ORM
directly, so a run can be driven by fixed clocks and in-memory fakes in
tests. Django implementations live in billing.periods, billing.enrollment,
billing.balances and billing.repositories.

Available Protocols:
    ClockSource: Current billing period
    EnrollmentRepository: Billing group lookup
    StudentRepository: Student reads and balance debits
    DebtRepository: Idempotency check and debt writes
    PaymentRepository: Payment writes

Usage:
    from billing.protocols import ClockSource

    class FrozenClock:
        def current_period(self) -> str:
            return "2025-03"

    # FrozenClock is a valid ClockSource
    # even without explicit inheritance (duck typing)
    clock: ClockSource = FrozenClock()

Note:
    - Protocols are primarily for type checking
    - @runtime_checkable allows isinstance() checks
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from decimal import Decimal

    from academy.models import Group, Student
    from billing.models import Debt, Payment
    from billing.types import DebtRecord, PaymentRecord


@runtime_checkable
class ClockSource(Protocol):
    """Source of the current billing period."""

    def current_period(self) -> str:
        """
        Return the current billing period.

        Returns:
            Period in ``YYYY-MM`` form
        """
        ...


@runtime_checkable
class EnrollmentRepository(Protocol):
    """Lookup of the group a student is billed against."""

    def billing_group_for(self, student_id: int) -> Group | None:
        """
        Return the group of the student's most recent enrollment.

        Args:
            student_id: ID of the student

        Returns:
            The billing group, or None if the student has no enrollment
        """
        ...


@runtime_checkable
class StudentRepository(Protocol):
    """Student reads and balance mutation."""

    def get(self, student_id: int) -> Student:
        """Return the student, raising StudentNotFound if missing."""
        ...

    def get_for_update(self, student_id: int) -> Student:
        """Return the student with its row locked for the transaction."""
        ...

    def debit(self, student_id: int, amount: Decimal) -> Decimal:
        """
        Decrease the student's balance.

        Args:
            student_id: ID of the student
            amount: Non-negative amount, at most the current balance

        Returns:
            The new balance

        Raises:
            InsufficientBalance: If amount exceeds the balance
            NegativeBalance: If the stored balance is negative
        """
        ...


@runtime_checkable
class DebtRepository(Protocol):
    """Debt persistence and the idempotency check."""

    def exists_for(self, student_id: int, period: str) -> bool:
        """Return True if a debt exists for (student, period)."""
        ...

    def create(self, record: DebtRecord) -> Debt:
        """
        Persist a new debt.

        Raises:
            AlreadyGenerated: If the (student, period) pair already exists
            PersistenceFailure: If the write fails for another reason
        """
        ...


@runtime_checkable
class PaymentRepository(Protocol):
    """Payment persistence."""

    def create(self, record: PaymentRecord) -> Payment:
        """Persist a new payment."""
        ...
