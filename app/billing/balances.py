"""
Balance ledger for student credit balances.

This module provides the BalanceLedger class which owns every write to
Student.balance. Debt generation debits it, manual top-ups credit it.

Usage:
    from billing.balances import BalanceLedger, ledger

    # Using the singleton
    balance = ledger.get_balance(student.id)

    # Debit inside the caller's transaction
    with transaction.atomic():
        student = ledger.get_for_update(student.id)
        new_balance = ledger.debit(student.id, Decimal("60000.00"))
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F

from academy.models import Student

from .exceptions import InsufficientBalance, InvalidAmount, NegativeBalance, StudentNotFound
from .settlement import to_money

logger = logging.getLogger(__name__)


class BalanceLedger:
    """
    Service class for student balance operations.

    Key features:
    - Row lock (SELECT ... FOR UPDATE) before every mutation
    - Balance validation before debits
    - Atomic F() updates so concurrent writers never lose an update

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def get(student_id: int) -> Student:
        """
        Get student by ID.

        Raises:
            StudentNotFound: If the student doesn't exist
        """
        try:
            return Student.objects.get(id=student_id)
        except Student.DoesNotExist:
            raise StudentNotFound(
                f"Student {student_id} not found",
                details={"student_id": student_id},
            )

    @staticmethod
    def get_for_update(student_id: int) -> Student:
        """
        Get student by ID with the row locked until the transaction ends.

        Must be called inside transaction.atomic().

        Raises:
            StudentNotFound: If the student doesn't exist
        """
        try:
            return Student.objects.select_for_update().get(id=student_id)
        except Student.DoesNotExist:
            raise StudentNotFound(
                f"Student {student_id} not found",
                details={"student_id": student_id},
            )

    @staticmethod
    def get_balance(student_id: int) -> Decimal:
        """Return the latest committed balance of a student."""
        return BalanceLedger.get(student_id).balance

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        amount = to_money(amount)
        if amount < 0:
            raise InvalidAmount(
                f"Amount must not be negative, got {amount}",
                details={"amount": str(amount)},
            )
        return amount

    @staticmethod
    def debit(student_id: int, amount: Decimal) -> Decimal:
        """
        Decrease a student's balance.

        Joins the caller's transaction when there is one, so the debit
        rolls back together with the rest of the caller's unit of work.

        Args:
            student_id: ID of the student
            amount: Amount to take from the balance (0 is a no-op)

        Returns:
            The new balance

        Raises:
            StudentNotFound: If the student doesn't exist
            InvalidAmount: If amount is negative or malformed
            NegativeBalance: If the stored balance is already negative
            InsufficientBalance: If amount exceeds the balance
        """
        amount = BalanceLedger._validate_amount(amount)

        with transaction.atomic():
            student = BalanceLedger.get_for_update(student_id)

            if student.balance < 0:
                raise NegativeBalance(student_id, student.balance)
            if amount > student.balance:
                raise InsufficientBalance(
                    student_id,
                    required=amount,
                    available=student.balance,
                )
            if amount == 0:
                return student.balance

            Student.objects.filter(id=student_id).update(balance=F("balance") - amount)
            student.refresh_from_db(fields=["balance"])

        logger.debug(
            f"Debited {amount} from student {student_id}",
            extra={"student_id": student_id, "amount": str(amount)},
        )
        return student.balance

    @staticmethod
    def credit(student_id: int, amount: Decimal) -> Decimal:
        """
        Increase a student's balance.

        Args:
            student_id: ID of the student
            amount: Positive amount to add

        Returns:
            The new balance

        Raises:
            StudentNotFound: If the student doesn't exist
            InvalidAmount: If amount is not positive
        """
        amount = BalanceLedger._validate_amount(amount)
        if amount == 0:
            raise InvalidAmount(
                "Amount must be positive",
                details={"amount": str(amount)},
            )

        with transaction.atomic():
            student = BalanceLedger.get_for_update(student_id)
            Student.objects.filter(id=student_id).update(balance=F("balance") + amount)
            student.refresh_from_db(fields=["balance"])

        logger.debug(
            f"Credited {amount} to student {student_id}",
            extra={"student_id": student_id, "amount": str(amount)},
        )
        return student.balance


# Singleton instance for convenience
ledger = BalanceLedger()
