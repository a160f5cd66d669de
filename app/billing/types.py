"""
Data types for debt generation.

This module defines dataclasses passed between the generation engine,
its repositories and its callers (Celery task, management command).

Types:
    Settlement: Outcome of applying a balance to a monthly fee
    DebtRecord: Values for a new Debt row
    PaymentRecord: Values for a new Payment row
    OutcomeKind: created / skipped / failed
    StudentOutcome: Result of processing one student
    GenerationReport: Summary of a whole generation run

Usage:
    from billing.types import GenerationReport

    report = DebtGenerationService().generate_debts_for_period("2025-03")
    print(report.created_count, report.skipped_count, report.failed_count)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from billing.exceptions import InvalidAmount
from billing.models import DebtStatus, PaymentType


@dataclass(frozen=True)
class Settlement:
    """
    Result of settling a monthly fee against a student's balance.

    Attributes:
        fee: Monthly fee being billed
        paid_amount: Part of the fee covered by the balance
        outstanding: Part of the fee still owed
        status: Resulting debt status
        is_paid: Whether the fee is fully covered

    Invariant:
        paid_amount + outstanding == fee
    """

    fee: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    status: DebtStatus
    is_paid: bool

    @property
    def payment_type(self) -> PaymentType:
        """Category of the payment recorded for this settlement."""
        return PaymentType.BALANCE if self.is_paid else PaymentType.DEBT


@dataclass
class DebtRecord:
    """Values for a new debt."""

    student_id: int
    group_id: int
    period: str
    amount: Decimal
    paid_amount: Decimal
    is_paid: bool
    status: DebtStatus


@dataclass
class PaymentRecord:
    """
    Values for a new payment.

    Attributes:
        student_id: Student the payment belongs to
        amount: Amount (must be positive)
        type: Payment category
        note: Free-text note
        debt_id: Debt settled by the payment, if any
    """

    student_id: int
    amount: Decimal
    type: PaymentType
    note: str = ""
    debt_id: uuid.UUID | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise InvalidAmount(
                f"Payment amount must be positive, got {self.amount}",
                details={"amount": str(self.amount)},
            )


class OutcomeKind(str, Enum):
    """How processing a student ended."""

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class StudentOutcome:
    """
    Result of processing one student for a period.

    Exactly one of the shapes applies:
        created: debt_id set, payment_id set when the balance paid something
        skipped: reason set ("no_billing_group" or "already_generated")
        failed: error and error_code set
    """

    student_id: int
    kind: OutcomeKind
    debt_id: uuid.UUID | None = None
    payment_id: uuid.UUID | None = None
    reason: str | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def created(
        cls,
        student_id: int,
        debt_id: uuid.UUID,
        payment_id: uuid.UUID | None = None,
    ) -> StudentOutcome:
        return cls(
            student_id=student_id,
            kind=OutcomeKind.CREATED,
            debt_id=debt_id,
            payment_id=payment_id,
        )

    @classmethod
    def skipped(cls, student_id: int, reason: str) -> StudentOutcome:
        return cls(student_id=student_id, kind=OutcomeKind.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, student_id: int, error: str, error_code: str) -> StudentOutcome:
        return cls(
            student_id=student_id,
            kind=OutcomeKind.FAILED,
            error=error,
            error_code=error_code,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "student_id": self.student_id,
            "outcome": self.kind.value,
        }
        if self.debt_id:
            result["debt_id"] = str(self.debt_id)
        if self.payment_id:
            result["payment_id"] = str(self.payment_id)
        if self.reason:
            result["reason"] = self.reason
        if self.error:
            result["error"] = self.error
            result["error_code"] = self.error_code
        return result


@dataclass
class GenerationReport:
    """Summary result of a debt generation run."""

    period: str
    started_at: datetime
    completed_at: datetime | None = None
    outcomes: list[StudentOutcome] = field(default_factory=list)

    def _of_kind(self, kind: OutcomeKind) -> list[StudentOutcome]:
        return [outcome for outcome in self.outcomes if outcome.kind == kind]

    @property
    def created(self) -> list[StudentOutcome]:
        return self._of_kind(OutcomeKind.CREATED)

    @property
    def skipped(self) -> list[StudentOutcome]:
        return self._of_kind(OutcomeKind.SKIPPED)

    @property
    def failed(self) -> list[StudentOutcome]:
        return self._of_kind(OutcomeKind.FAILED)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    def outcome_for(self, student_id: int) -> StudentOutcome | None:
        """Return the outcome recorded for a student, if any."""
        for outcome in self.outcomes:
            if outcome.student_id == student_id:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable summary."""
        return {
            "period": self.period,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "created": self.created_count,
            "skipped": self.skipped_count,
            "failed": self.failed_count,
            "failures": [outcome.to_dict() for outcome in self.failed],
        }
