"""
Billing models for monthly tuition debts and payments.

Models:
    Debt: Obligation of one student for one billing period
    Payment: Append-only record of money applied for a student

Debt Status State Machine (django-fsm):
    unpaid → partial → paid
    unpaid → paid

    The initial status is chosen by settlement at generation time.
    Later manual payments move it forward through apply_payment().

Invariants:
    - One debt per (student, period), enforced by a unique constraint
    - amount + paid_amount equals the group's fee at generation time
    - Payment amounts are strictly positive

Usage:
    from billing.models import Debt, DebtStatus, Payment

    open_debts = Debt.objects.filter(period="2025-03").exclude(status=DebtStatus.PAID)
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from academy.models import Group, Student
from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class DebtStatus(models.TextChoices):
    """
    Settlement status of a debt.

    Values:
        UNPAID: Nothing paid yet, amount equals the fee
        PARTIAL: Part of the fee paid, amount still outstanding
        PAID: Fully settled, amount is zero
    """

    UNPAID = "unpaid", "Unpaid"
    PARTIAL = "partial", "Partially paid"
    PAID = "paid", "Paid"


class PaymentType(models.TextChoices):
    """
    Category of a payment.

    Values:
        DEBT: Applied toward a debt that remains (or was) partially open
        BALANCE: Paid from, or into, the student's credit balance
    """

    DEBT = "debt", "Debt"
    BALANCE = "balance", "Balance"


class Debt(UUIDPrimaryKeyMixin, BaseModel):
    """
    Monthly tuition obligation of one student.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        student: Student who owes the fee
        group: Group whose fee was billed
        period: Billing period, ``YYYY-MM``
        amount: Outstanding amount (never negative)
        paid_amount: Amount settled so far (never negative)
        is_paid: Whether the debt is fully settled
        status: Settlement status (managed by FSM)

    Constraints:
        - Unique combination of (student, period)
        - amount >= 0 and paid_amount >= 0
    """

    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name="debts",
        help_text="Student who owes this debt",
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.PROTECT,
        related_name="debts",
        help_text="Group whose monthly fee was billed",
    )
    period = models.CharField(
        max_length=7,
        db_index=True,
        help_text="Billing period (YYYY-MM)",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Outstanding amount",
    )
    paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Amount settled so far",
    )
    is_paid = models.BooleanField(
        default=False,
        help_text="Whether this debt is fully settled",
    )
    status = FSMField(
        default=DebtStatus.UNPAID,
        choices=DebtStatus.choices,
        db_index=True,
        help_text="Settlement status (managed by FSM)",
    )

    class Meta:
        ordering = ["-period", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "period"],
                name="unique_debt_per_student_period",
            ),
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="billing_debt_amount_non_negative",
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__gte=0),
                name="billing_debt_paid_amount_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.student} {self.period}: {self.amount} ({self.status})"

    @property
    def total(self) -> Decimal:
        """Fee billed for the period (outstanding plus settled)."""
        return self.amount + self.paid_amount

    # =========================================================================
    # State Transitions
    # =========================================================================

    @transition(
        field=status,
        source=[DebtStatus.UNPAID, DebtStatus.PARTIAL],
        target=DebtStatus.PARTIAL,
    )
    def mark_partial(self):
        """Record that part of the outstanding amount was paid."""
        self.is_paid = False

    @transition(
        field=status,
        source=[DebtStatus.UNPAID, DebtStatus.PARTIAL],
        target=DebtStatus.PAID,
    )
    def mark_paid(self):
        """Record that the debt is fully settled."""
        self.is_paid = True

    def apply_payment(self, amount: Decimal) -> None:
        """
        Move ``amount`` from outstanding to paid and advance the status.

        The caller validates that 0 < amount <= self.amount and saves
        the instance afterwards.
        """
        self.amount -= amount
        self.paid_amount += amount
        if self.amount == 0:
            self.mark_paid()
        else:
            self.mark_partial()


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Money applied for a student.

    Payments are append-only: corrections are recorded as new rows.

    Fields:
        id: UUID primary key (from UUIDPrimaryKeyMixin)
        student: Student the payment belongs to
        amount: Amount (always positive)
        paid_at: When the payment happened
        note: Free-text note
        type: Payment category (debt or balance)
        debt: Debt the payment settled, if any
    """

    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Student this payment belongs to",
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Payment amount (always positive)",
    )
    paid_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="When the payment happened",
    )
    note = models.CharField(
        max_length=255,
        blank=True,
        help_text="Free-text note",
    )
    type = models.CharField(
        max_length=20,
        choices=PaymentType.choices,
        help_text="Payment category",
    )
    debt = models.ForeignKey(
        Debt,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Debt settled by this payment",
    )

    class Meta:
        ordering = ["-paid_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="billing_payment_amount_positive",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_type_display()}: {self.amount}"
