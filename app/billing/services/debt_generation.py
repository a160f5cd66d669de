"""
Debt generation service for monthly tuition billing.

This module provides the DebtGenerationService class which creates each
student's debt for a billing period and settles it against the student's
pre-paid balance.

Per-student flow:
    1. Resolve the billing group (none → skipped "no_billing_group")
    2. Fast-path idempotency check (exists → skipped "already_generated")
    3. In one transaction:
       a. Lock the student row and read the balance
       b. Compute the settlement (paid / partial / unpaid)
       c. Debit the balance by the settled amount
       d. Create the Debt (unique constraint is the final guard)
       e. Create a Payment when the balance covered anything

Failure Isolation:
    Each student is an independent unit of work. A failure rolls back
    that student's transaction, is recorded in the report and the run
    continues with the next student. Reruns for the same period are safe:
    students already billed are reported as skipped.

Usage:
    from billing.services import DebtGenerationService

    report = DebtGenerationService().generate_debts_for_period("2025-03")
    for outcome in report.failed:
        print(outcome.student_id, outcome.error_code)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from itertools import repeat
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone

from academy.models import Student
from core.exceptions import ValidationError
from core.services import BaseService

from billing.balances import BalanceLedger
from billing.enrollment import EnrollmentLookup
from billing.exceptions import (
    AlreadyGenerated,
    BillingError,
    NoBillingGroup,
    PersistenceFailure,
)
from billing.periods import SystemClock, parse_period
from billing.repositories import DebtRepository, PaymentRepository
from billing.settlement import compute_settlement
from billing.types import DebtRecord, GenerationReport, PaymentRecord, StudentOutcome

if TYPE_CHECKING:
    from academy.models import Group
    from billing.models import Debt, Payment
    from billing.protocols import (
        ClockSource,
        DebtRepository as DebtRepositoryProtocol,
        EnrollmentRepository,
        PaymentRepository as PaymentRepositoryProtocol,
        StudentRepository,
    )

SKIP_NO_BILLING_GROUP = "no_billing_group"
SKIP_ALREADY_GENERATED = "already_generated"

DEFAULT_PAYMENT_NOTE = "automatic debt settlement"


class DebtGenerationService(BaseService):
    """
    Service for generating and settling monthly debts.

    Unlike most services this one carries injected collaborators, so a
    run can use a fixed clock or fake repositories. Every collaborator
    defaults to its Django implementation.

    Concurrency Safety:
        - Student row lock serializes runs touching the same student
        - Existence re-checked after the lock is taken
        - unique_debt_per_student_period rejects anything that slips through
    """

    def __init__(
        self,
        clock: ClockSource | None = None,
        enrollments: EnrollmentRepository | None = None,
        students: StudentRepository | None = None,
        debts: DebtRepositoryProtocol | None = None,
        payments: PaymentRepositoryProtocol | None = None,
        payment_note: str | None = None,
    ):
        self.clock = clock or SystemClock()
        self.enrollments = enrollments or EnrollmentLookup()
        self.students = students or BalanceLedger()
        self.debts = debts or DebtRepository()
        self.payments = payments or PaymentRepository()
        self.payment_note = payment_note or getattr(
            settings, "BILLING_PAYMENT_NOTE", DEFAULT_PAYMENT_NOTE
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def generate_debts_for_period(
        self,
        period: str | None = None,
        max_workers: int | None = None,
    ) -> GenerationReport:
        """
        Generate debts for every student for a billing period.

        Args:
            period: Billing period ``YYYY-MM`` (default: current period)
            max_workers: Number of worker threads (default:
                settings.BILLING_MAX_WORKERS). 1 processes students
                sequentially in the calling thread.

        Returns:
            GenerationReport with one outcome per student

        Raises:
            InvalidPeriod: If period is not a valid YYYY-MM value
            ValidationError: If max_workers is less than 1
        """
        period = parse_period(period) if period is not None else self.clock.current_period()
        workers = (
            max_workers
            if max_workers is not None
            else getattr(settings, "BILLING_MAX_WORKERS", 1)
        )
        if workers < 1:
            raise ValidationError(
                f"max_workers must be at least 1, got {workers}",
                error_code="INVALID_WORKERS",
                details={"max_workers": workers},
            )

        logger = self.get_logger()
        report = GenerationReport(period=period, started_at=timezone.now())
        student_ids = list(Student.objects.order_by("id").values_list("id", flat=True))

        logger.info(
            f"Starting debt generation for {period}",
            extra={
                "period": period,
                "students": len(student_ids),
                "max_workers": workers,
            },
        )

        if workers == 1:
            report.outcomes = [
                self.process_student(student_id, period) for student_id in student_ids
            ]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                report.outcomes = list(
                    executor.map(self._process_in_worker, student_ids, repeat(period))
                )

        report.completed_at = timezone.now()

        logger.info(
            f"Debt generation for {period} completed",
            extra={
                "period": period,
                "created_count": report.created_count,
                "skipped_count": report.skipped_count,
                "failed_count": report.failed_count,
            },
        )
        return report

    def process_student(self, student_id: int, period: str) -> StudentOutcome:
        """
        Generate and settle one student's debt for a period.

        Never raises: every error is converted into a skipped or failed
        outcome so the caller can move on to the next student.
        """
        logger = self.get_logger()

        try:
            group = self.enrollments.billing_group_for(student_id)
            if group is None:
                raise NoBillingGroup(
                    f"Student {student_id} has no enrollment",
                    details={"student_id": student_id},
                )
            if self.debts.exists_for(student_id, period):
                raise AlreadyGenerated(
                    f"Debt for student {student_id} in {period} already exists",
                    details={"student_id": student_id, "period": period},
                )

            debt, payment = self._settle(student_id, group, period)

        except NoBillingGroup:
            return StudentOutcome.skipped(student_id, SKIP_NO_BILLING_GROUP)

        except AlreadyGenerated:
            return StudentOutcome.skipped(student_id, SKIP_ALREADY_GENERATED)

        except BillingError as e:
            logger.warning(
                f"Debt generation failed for student {student_id}: {e}",
                extra={
                    "student_id": student_id,
                    "period": period,
                    "error_code": e.error_code,
                },
            )
            return StudentOutcome.failed(student_id, e.message, e.error_code)

        except DatabaseError as e:
            failure = PersistenceFailure(
                f"Database error for student {student_id}: {e}",
                details={"student_id": student_id, "period": period},
            )
            logger.exception(
                str(failure),
                extra={"student_id": student_id, "period": period},
            )
            return StudentOutcome.failed(student_id, failure.message, failure.error_code)

        except Exception as e:
            logger.exception(
                f"Unexpected error generating debt for student {student_id}: {e}",
                extra={"student_id": student_id, "period": period},
            )
            return StudentOutcome.failed(student_id, str(e), "UNEXPECTED_ERROR")

        return StudentOutcome.created(
            student_id,
            debt_id=debt.id,
            payment_id=payment.id if payment else None,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _process_in_worker(self, student_id: int, period: str) -> StudentOutcome:
        try:
            return self.process_student(student_id, period)
        finally:
            connection.close()  # Each worker thread owns its connection

    def _settle(
        self,
        student_id: int,
        group: Group,
        period: str,
    ) -> tuple[Debt, Payment | None]:
        with self.atomic():
            student = self.students.get_for_update(student_id)

            # A concurrent run may have committed while we waited for the lock
            if self.debts.exists_for(student_id, period):
                raise AlreadyGenerated(
                    f"Debt for student {student_id} in {period} already exists",
                    details={"student_id": student_id, "period": period},
                )

            settlement = compute_settlement(
                group.monthly_fee,
                student.balance,
                student_id=student_id,
            )

            if settlement.paid_amount > 0:
                self.students.debit(student_id, settlement.paid_amount)

            debt = self.debts.create(
                DebtRecord(
                    student_id=student_id,
                    group_id=group.id,
                    period=period,
                    amount=settlement.outstanding,
                    paid_amount=settlement.paid_amount,
                    is_paid=settlement.is_paid,
                    status=settlement.status,
                )
            )

            payment = None
            if settlement.paid_amount > 0:
                payment = self.payments.create(
                    PaymentRecord(
                        student_id=student_id,
                        amount=settlement.paid_amount,
                        type=settlement.payment_type,
                        note=self.payment_note,
                        debt_id=debt.id,
                    )
                )

        return debt, payment
