"""
Django ORM repositories for debts and payments.

The idempotency guard has two layers:
    1. DebtRepository.exists_for() - fast path, avoids needless locking
    2. unique_debt_per_student_period - authoritative, survives races

create() runs the insert inside a savepoint so a constraint violation
leaves the caller's transaction usable long enough to raise a typed error.
"""

from __future__ import annotations

import logging

from django.db import DatabaseError, IntegrityError, transaction

from .exceptions import AlreadyGenerated, PersistenceFailure
from .models import Debt, Payment
from .types import DebtRecord, PaymentRecord

logger = logging.getLogger(__name__)


class DebtRepository:
    """Django implementation of the debt repository."""

    def exists_for(self, student_id: int, period: str) -> bool:
        return Debt.objects.filter(student_id=student_id, period=period).exists()

    def create(self, record: DebtRecord) -> Debt:
        """
        Insert a debt.

        Raises:
            AlreadyGenerated: The unique constraint rejected the insert
            PersistenceFailure: Any other database error
        """
        try:
            with transaction.atomic():
                return Debt.objects.create(
                    student_id=record.student_id,
                    group_id=record.group_id,
                    period=record.period,
                    amount=record.amount,
                    paid_amount=record.paid_amount,
                    is_paid=record.is_paid,
                    status=record.status,
                )
        except IntegrityError as e:
            # Race condition: a concurrent run inserted the same pair
            # between our existence check and this insert
            if Debt.objects.filter(
                student_id=record.student_id, period=record.period
            ).exists():
                logger.info(
                    "Unique constraint rejected duplicate debt",
                    extra={
                        "student_id": record.student_id,
                        "period": record.period,
                    },
                )
                raise AlreadyGenerated(
                    f"Debt for student {record.student_id} in {record.period} "
                    "already exists",
                    details={
                        "student_id": record.student_id,
                        "period": record.period,
                    },
                ) from e
            raise PersistenceFailure(
                f"Could not store debt for student {record.student_id}: {e}",
                details={"student_id": record.student_id, "period": record.period},
            ) from e
        except DatabaseError as e:
            raise PersistenceFailure(
                f"Could not store debt for student {record.student_id}: {e}",
                details={"student_id": record.student_id, "period": record.period},
            ) from e


class PaymentRepository:
    """Django implementation of the payment repository."""

    def create(self, record: PaymentRecord) -> Payment:
        """
        Insert a payment.

        Raises:
            PersistenceFailure: The database rejected the insert
        """
        try:
            with transaction.atomic():
                return Payment.objects.create(
                    student_id=record.student_id,
                    amount=record.amount,
                    type=record.type,
                    note=record.note,
                    debt_id=record.debt_id,
                )
        except DatabaseError as e:
            raise PersistenceFailure(
                f"Could not store payment for student {record.student_id}: {e}",
                details={"student_id": record.student_id},
            ) from e
