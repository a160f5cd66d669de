"""
Tests for the generate_debts management command.
"""

from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import pytest
from django.core.management import CommandError, call_command

from billing.models import Debt


def run_command(*args):
    out, err = StringIO(), StringIO()
    call_command("generate_debts", *args, stdout=out, stderr=err)
    return out.getvalue(), err.getvalue()


class TestGenerateDebtsCommand:
    """Tests for manage.py generate_debts."""

    def test_prints_summary(self, enrolled_student):
        enrolled_student(balance=Decimal("60000.00"))

        out, err = run_command("--period", "2025-03")

        assert "Period 2025-03: created=1, skipped=0, failed=0" in out
        assert err == ""
        assert Debt.objects.filter(period="2025-03").count() == 1

    def test_rerun_is_safe(self, enrolled_student):
        enrolled_student()
        run_command("--period", "2025-03")

        out, _ = run_command("--period", "2025-03")

        assert "created=0, skipped=1" in out
        assert Debt.objects.count() == 1

    def test_failures_written_to_stderr(self, enrolled_student):
        student = enrolled_student()

        with patch(
            "billing.services.debt_generation.compute_settlement",
            side_effect=RuntimeError("boom"),
        ):
            out, err = run_command("--period", "2025-03")

        assert "failed=1" in out
        assert f"Student {student.id}: [UNEXPECTED_ERROR] boom" in err

    def test_invalid_period(self, db):
        with pytest.raises(CommandError, match="Invalid billing period"):
            run_command("--period", "March")

    def test_invalid_workers(self, db):
        with pytest.raises(CommandError, match="--workers"):
            run_command("--workers", "0")
