"""
Tests for DebtGenerationService.

Covers the settlement outcomes, idempotent reruns, skip reasons and
per-student failure isolation of a generation run.
"""

import logging
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError

from academy.tests.factories import EnrollmentFactory, GroupFactory, StudentFactory
from billing.balances import BalanceLedger
from billing.exceptions import InvalidPeriod
from billing.models import Debt, DebtStatus, Payment, PaymentType
from billing.periods import FixedClock
from billing.repositories import DebtRepository, PaymentRepository
from billing.settlement import compute_settlement
from billing.services import DebtGenerationService
from billing.tests.conftest import FEE, PERIOD
from billing.tests.factories import DebtFactory
from billing.types import OutcomeKind
from core.exceptions import ValidationError


class TestSettlementOutcomes:
    """The three balance cases of a first run for a period."""

    def test_balance_covers_fee(self, service, enrolled_student):
        """Balance 200000, fee 150000: paid debt, balance left 50000."""
        student = enrolled_student(balance=Decimal("200000.00"))

        report = service.generate_debts_for_period()

        debt = Debt.objects.get(student=student, period=PERIOD)
        assert debt.amount == Decimal("0.00")
        assert debt.paid_amount == Decimal("150000.00")
        assert debt.is_paid is True
        assert debt.status == DebtStatus.PAID

        student.refresh_from_db()
        assert student.balance == Decimal("50000.00")

        payment = Payment.objects.get(student=student)
        assert payment.amount == Decimal("150000.00")
        assert payment.type == PaymentType.BALANCE
        assert payment.note == "automatic debt settlement"
        assert payment.debt_id == debt.id

        outcome = report.outcome_for(student.id)
        assert outcome.kind == OutcomeKind.CREATED
        assert outcome.debt_id == debt.id
        assert outcome.payment_id == payment.id

    def test_balance_covers_part_of_fee(self, service, enrolled_student):
        """Balance 60000, fee 150000: partial debt of 90000, balance emptied."""
        student = enrolled_student(balance=Decimal("60000.00"))

        service.generate_debts_for_period()

        debt = Debt.objects.get(student=student, period=PERIOD)
        assert debt.amount == Decimal("90000.00")
        assert debt.paid_amount == Decimal("60000.00")
        assert debt.is_paid is False
        assert debt.status == DebtStatus.PARTIAL

        student.refresh_from_db()
        assert student.balance == Decimal("0.00")

        payment = Payment.objects.get(student=student)
        assert payment.amount == Decimal("60000.00")
        assert payment.type == PaymentType.DEBT
        assert payment.debt_id == debt.id

    def test_zero_balance(self, service, enrolled_student):
        """Balance 0: unpaid debt for the whole fee, no payment."""
        student = enrolled_student(balance=Decimal("0.00"))

        report = service.generate_debts_for_period()

        debt = Debt.objects.get(student=student, period=PERIOD)
        assert debt.amount == FEE
        assert debt.paid_amount == Decimal("0.00")
        assert debt.status == DebtStatus.UNPAID
        assert not Payment.objects.filter(student=student).exists()
        assert report.outcome_for(student.id).payment_id is None

    def test_debt_amounts_sum_to_fee(self, service, enrolled_student):
        for balance in ["0", "0.01", "149999.99", "150000", "1000000"]:
            enrolled_student(balance=Decimal(balance))

        service.generate_debts_for_period()

        for debt in Debt.objects.filter(period=PERIOD):
            assert debt.amount + debt.paid_amount == FEE
            assert debt.amount >= 0

    def test_debt_records_billing_group(self, service, enrolled_student, group):
        student = enrolled_student()

        service.generate_debts_for_period()

        assert Debt.objects.get(student=student).group == group

    def test_zero_fee_group(self, service, enrolled_student):
        free = GroupFactory(monthly_fee=Decimal("0.00"))
        student = enrolled_student(balance=Decimal("500.00"), in_group=free)

        service.generate_debts_for_period()

        debt = Debt.objects.get(student=student)
        assert debt.amount == Decimal("0.00")
        assert debt.status == DebtStatus.PAID
        assert not Payment.objects.filter(student=student).exists()
        student.refresh_from_db()
        assert student.balance == Decimal("500.00")

    def test_payment_note_is_configurable(self, clock, enrolled_student, settings):
        settings.BILLING_PAYMENT_NOTE = "auto"
        student = enrolled_student(balance=Decimal("200000.00"))

        DebtGenerationService(clock=clock).generate_debts_for_period()

        assert Payment.objects.get(student=student).note == "auto"


class TestIdempotency:
    """Reruns for the same period never bill twice."""

    def test_second_run_skips_everyone(self, service, enrolled_student):
        student = enrolled_student(balance=Decimal("200000.00"))
        service.generate_debts_for_period()

        report = service.generate_debts_for_period()

        assert report.created_count == 0
        assert report.skipped_count == 1
        assert report.outcome_for(student.id).reason == "already_generated"
        assert Debt.objects.filter(student=student).count() == 1
        assert Payment.objects.filter(student=student).count() == 1
        student.refresh_from_db()
        assert student.balance == Decimal("50000.00")

    def test_non_ascii_digits_cannot_rebill_period(self, service, enrolled_student):
        student = enrolled_student(balance=Decimal("400000.00"))
        service.generate_debts_for_period(PERIOD)

        with pytest.raises(InvalidPeriod):
            service.generate_debts_for_period("\uff12\uff10\uff12\uff15-03")

        assert Debt.objects.filter(student=student).count() == 1
        student.refresh_from_db()
        assert student.balance == Decimal("250000.00")

    def test_next_period_bills_again(self, enrolled_student):
        student = enrolled_student(balance=Decimal("200000.00"))

        DebtGenerationService(clock=FixedClock("2025-03")).generate_debts_for_period()
        DebtGenerationService(clock=FixedClock("2025-04")).generate_debts_for_period()

        march = Debt.objects.get(student=student, period="2025-03")
        april = Debt.objects.get(student=student, period="2025-04")
        assert march.status == DebtStatus.PAID
        assert april.status == DebtStatus.PARTIAL
        assert april.paid_amount == Decimal("50000.00")
        student.refresh_from_db()
        assert student.balance == Decimal("0.00")

    def test_existing_debt_is_not_modified(self, service, enrolled_student, group):
        student = enrolled_student(balance=Decimal("200000.00"))
        existing = DebtFactory(student=student, group=group, period=PERIOD)

        service.generate_debts_for_period()

        existing.refresh_from_db()
        assert existing.status == DebtStatus.UNPAID
        student.refresh_from_db()
        assert student.balance == Decimal("200000.00")

    def test_constraint_catches_missed_existence_check(self, clock, enrolled_student, group):
        """
        A concurrent insert between check and write is reported as a skip.

        The existence check is forced to miss, so only the unique
        constraint stands between the run and a duplicate debt.
        """

        class BlindDebtRepository(DebtRepository):
            def exists_for(self, student_id, period):
                return False

        student = enrolled_student(balance=Decimal("200000.00"))
        DebtFactory(student=student, group=group, period=PERIOD)
        service = DebtGenerationService(clock=clock, debts=BlindDebtRepository())

        report = service.generate_debts_for_period()

        outcome = report.outcome_for(student.id)
        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.reason == "already_generated"
        assert Debt.objects.filter(student=student).count() == 1
        assert not Payment.objects.filter(student=student).exists()
        student.refresh_from_db()
        assert student.balance == Decimal("200000.00")

    def test_fee_change_does_not_touch_generated_debts(self, service, enrolled_student, group):
        student = enrolled_student()
        service.generate_debts_for_period()

        group.monthly_fee = Decimal("999999.00")
        group.save()
        service.generate_debts_for_period()

        assert Debt.objects.get(student=student).amount == FEE


class TestSkips:
    """Students without a billing group."""

    def test_student_without_enrollment_is_skipped(self, service, db):
        student = StudentFactory(balance=Decimal("200000.00"))

        report = service.generate_debts_for_period()

        outcome = report.outcome_for(student.id)
        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.reason == "no_billing_group"
        assert not Debt.objects.filter(student=student).exists()
        student.refresh_from_db()
        assert student.balance == Decimal("200000.00")

    def test_multi_group_student_gets_one_debt(self, service, enrolled_student):
        expensive = GroupFactory(monthly_fee=Decimal("300000.00"))
        student = enrolled_student()
        EnrollmentFactory(student=student, group=expensive)

        service.generate_debts_for_period()

        debts = Debt.objects.filter(student=student, period=PERIOD)
        assert debts.count() == 1
        assert debts.get().group == expensive


class TestFailureIsolation:
    """A failing student never stops the batch."""

    def test_persistence_failure_rolls_back_student(self, clock, enrolled_student):
        healthy = enrolled_student(balance=Decimal("200000.00"))
        broken = enrolled_student(balance=Decimal("200000.00"))

        class FlakyPaymentRepository(PaymentRepository):
            def create(self, record):
                if record.student_id == broken.id:
                    raise OperationalError("connection reset")
                return super().create(record)

        service = DebtGenerationService(clock=clock, payments=FlakyPaymentRepository())

        report = service.generate_debts_for_period()

        failed = report.outcome_for(broken.id)
        assert failed.kind == OutcomeKind.FAILED
        assert failed.error_code == "PERSISTENCE_FAILURE"
        assert not Debt.objects.filter(student=broken).exists()
        broken.refresh_from_db()
        assert broken.balance == Decimal("200000.00")

        assert report.outcome_for(healthy.id).kind == OutcomeKind.CREATED
        healthy.refresh_from_db()
        assert healthy.balance == Decimal("50000.00")

    def test_failed_student_is_billed_on_rerun(self, clock, enrolled_student):
        student = enrolled_student(balance=Decimal("60000.00"))

        with patch.object(
            PaymentRepository, "create", side_effect=OperationalError("timeout")
        ):
            first = DebtGenerationService(clock=clock).generate_debts_for_period()
        second = DebtGenerationService(clock=clock).generate_debts_for_period()

        assert first.failed_count == 1
        assert second.created_count == 1
        assert Debt.objects.get(student=student).status == DebtStatus.PARTIAL

    def test_negative_balance_fails_student(self, clock, enrolled_student):
        student = enrolled_student()

        class CorruptedLedger(BalanceLedger):
            @staticmethod
            def get_for_update(student_id):
                corrupted = BalanceLedger.get(student_id)
                corrupted.balance = Decimal("-10.00")
                return corrupted

        service = DebtGenerationService(clock=clock, students=CorruptedLedger())

        report = service.generate_debts_for_period()

        outcome = report.outcome_for(student.id)
        assert outcome.kind == OutcomeKind.FAILED
        assert outcome.error_code == "NEGATIVE_BALANCE"
        assert not Debt.objects.filter(student=student).exists()

    def test_unexpected_error_is_reported(self, service, enrolled_student):
        first = enrolled_student()
        second = enrolled_student()

        def flaky_settlement(fee, balance, student_id=None):
            if student_id == first.id:
                raise RuntimeError("boom")
            return compute_settlement(fee, balance, student_id=student_id)

        with patch(
            "billing.services.debt_generation.compute_settlement",
            side_effect=flaky_settlement,
        ):
            report = service.generate_debts_for_period()

        outcome = report.outcome_for(first.id)
        assert outcome.kind == OutcomeKind.FAILED
        assert outcome.error_code == "UNEXPECTED_ERROR"
        assert outcome.error == "boom"
        assert report.outcome_for(second.id).kind == OutcomeKind.CREATED

    def test_failures_logged(self, clock, enrolled_student, caplog):
        enrolled_student(balance=Decimal("1.00"))

        with patch.object(
            PaymentRepository, "create", side_effect=OperationalError("timeout")
        ):
            DebtGenerationService(clock=clock).generate_debts_for_period()

        assert any(
            record.levelname == "ERROR" and "Database error" in record.getMessage()
            for record in caplog.records
        )


class TestRunArguments:
    """Period and worker arguments."""

    def test_explicit_period_overrides_clock(self, service, enrolled_student):
        student = enrolled_student()

        report = service.generate_debts_for_period("2024-12")

        assert report.period == "2024-12"
        assert Debt.objects.get(student=student).period == "2024-12"

    def test_defaults_to_clock_period(self, service, enrolled_student):
        enrolled_student()

        report = service.generate_debts_for_period()

        assert report.period == PERIOD

    def test_invalid_period_raises(self, service, db):
        with pytest.raises(InvalidPeriod):
            service.generate_debts_for_period("2024-13")

    def test_invalid_worker_count_raises(self, service, db):
        with pytest.raises(ValidationError) as exc_info:
            service.generate_debts_for_period(max_workers=-1)

        assert exc_info.value.error_code == "INVALID_WORKERS"

    def test_zero_workers_rejected(self, service, enrolled_student):
        enrolled_student()

        with pytest.raises(ValidationError) as exc_info:
            service.generate_debts_for_period(max_workers=0)

        assert exc_info.value.details == {"max_workers": 0}
        assert not Debt.objects.exists()

    def test_completion_logged_with_counts(self, service, enrolled_student, caplog):
        enrolled_student()
        StudentFactory()

        with caplog.at_level(logging.INFO):
            report = service.generate_debts_for_period()

        assert report.created_count == 1
        completed = [
            record
            for record in caplog.records
            if record.getMessage() == f"Debt generation for {PERIOD} completed"
        ]
        assert len(completed) == 1
        assert completed[0].created_count == 1
        assert completed[0].skipped_count == 1
        assert completed[0].failed_count == 0

    def test_students_processed_in_id_order(self, service, enrolled_student):
        ids = [enrolled_student().id for _ in range(3)]

        report = service.generate_debts_for_period()

        assert [outcome.student_id for outcome in report.outcomes] == sorted(ids)

    def test_report_summary(self, service, enrolled_student, db):
        enrolled_student()
        StudentFactory()

        summary = service.generate_debts_for_period().to_dict()

        assert summary["period"] == PERIOD
        assert summary["created"] == 1
        assert summary["skipped"] == 1
        assert summary["failed"] == 0
        assert summary["failures"] == []
        assert summary["completed_at"] is not None
