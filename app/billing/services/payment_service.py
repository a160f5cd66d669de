"""
Payment service for manually recorded payments.

Two operations record money received at the front desk:
    top_up_balance: Add pre-paid credit to a student's balance
    pay_debt: Pay toward an open debt

Expected failures (bad amount, unknown record, overpayment) are returned
as ServiceResult failures; database errors are logged and converted.

Usage:
    from billing.services import PaymentService

    result = PaymentService.pay_debt(debt.id, Decimal("50000"), note="cash")
    if result.success:
        payment = result.data
    else:
        print(result.error_code)  # e.g. "OVERPAYMENT"
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import DatabaseError

from core.exceptions import BaseApplicationError, ConflictError, NotFoundError
from core.services import BaseService, ServiceResult

from billing.balances import ledger
from billing.exceptions import BillingError
from billing.models import Debt, DebtStatus, Payment, PaymentType
from billing.repositories import PaymentRepository
from billing.settlement import to_money
from billing.types import PaymentRecord


class PaymentService(BaseService):
    """
    Service for recording manual payments.

    All methods are classmethods - no instance state is maintained.
    """

    payments = PaymentRepository()

    @classmethod
    def _positive_amount(cls, amount: Decimal) -> Decimal | ServiceResult:
        try:
            amount = to_money(amount)
        except BillingError as e:
            return ServiceResult.from_exception(e)
        if amount <= 0:
            return ServiceResult.failure(
                f"Amount must be positive, got {amount}",
                error_code="INVALID_AMOUNT",
            )
        return amount

    @classmethod
    def top_up_balance(
        cls,
        student_id: int,
        amount: Decimal,
        note: str = "",
    ) -> ServiceResult[Payment]:
        """
        Add credit to a student's balance.

        Args:
            student_id: ID of the student
            amount: Positive amount received
            note: Free-text note stored on the payment

        Returns:
            ServiceResult containing the balance Payment, or failure with
            INVALID_AMOUNT or STUDENT_NOT_FOUND
        """
        amount = cls._positive_amount(amount)
        if isinstance(amount, ServiceResult):
            return amount

        try:
            with cls.atomic():
                new_balance = ledger.credit(student_id, amount)
                payment = cls.payments.create(
                    PaymentRecord(
                        student_id=student_id,
                        amount=amount,
                        type=PaymentType.BALANCE,
                        note=note,
                    )
                )
        except BillingError as e:
            return ServiceResult.from_exception(e)
        except DatabaseError as e:
            return cls.handle_exception(e, f"Top-up failed for student {student_id}")

        cls.get_logger().info(
            f"Balance top-up of {amount} for student {student_id}",
            extra={
                "student_id": student_id,
                "amount": str(amount),
                "balance": str(new_balance),
                "payment_id": str(payment.id),
            },
        )
        return ServiceResult.success(payment)

    @classmethod
    def pay_debt(
        cls,
        debt_id: uuid.UUID,
        amount: Decimal,
        note: str = "",
    ) -> ServiceResult[Payment]:
        """
        Pay toward an open debt.

        Moves ``amount`` from the debt's outstanding amount to its paid
        amount and advances the status (unpaid/partial → partial or paid).
        The student's balance is not touched.

        Args:
            debt_id: ID of the debt
            amount: Positive amount, at most the outstanding amount
            note: Free-text note stored on the payment

        Returns:
            ServiceResult containing the debt Payment, or failure with
            INVALID_AMOUNT, DEBT_NOT_FOUND, DEBT_ALREADY_PAID or OVERPAYMENT
        """
        amount = cls._positive_amount(amount)
        if isinstance(amount, ServiceResult):
            return amount

        try:
            with cls.atomic():
                debt = Debt.objects.select_for_update().filter(id=debt_id).first()
                if debt is None:
                    raise NotFoundError(
                        f"Debt {debt_id} not found",
                        error_code="DEBT_NOT_FOUND",
                        details={"debt_id": str(debt_id)},
                    )
                if debt.status == DebtStatus.PAID:
                    raise ConflictError(
                        f"Debt {debt_id} is already paid",
                        error_code="DEBT_ALREADY_PAID",
                        details={"debt_id": str(debt_id)},
                    )
                if amount > debt.amount:
                    raise ConflictError(
                        f"Amount {amount} exceeds outstanding {debt.amount}",
                        error_code="OVERPAYMENT",
                        details={
                            "amount": str(amount),
                            "outstanding": str(debt.amount),
                        },
                    )

                debt.apply_payment(amount)
                debt.save(
                    update_fields=[
                        "amount",
                        "paid_amount",
                        "is_paid",
                        "status",
                        "updated_at",
                    ]
                )
                payment = cls.payments.create(
                    PaymentRecord(
                        student_id=debt.student_id,
                        amount=amount,
                        type=PaymentType.DEBT,
                        note=note,
                        debt_id=debt.id,
                    )
                )
        except BaseApplicationError as e:
            return ServiceResult.from_exception(e)
        except DatabaseError as e:
            return cls.handle_exception(e, f"Payment failed for debt {debt_id}")

        cls.get_logger().info(
            f"Recorded payment of {amount} for debt {debt_id}",
            extra={
                "debt_id": str(debt_id),
                "amount": str(amount),
                "status": debt.status,
                "payment_id": str(payment.id),
            },
        )
        return ServiceResult.success(payment)
