"""
Pytest fixtures for billing tests.

The period "2025-03" and the fee 150000.00 are used throughout, matching
the worked settlement examples (balances 200000 / 60000 / 0).

Usage:
    def test_partial(service, enrolled_student):
        student = enrolled_student(balance=Decimal("60000.00"))
        report = service.generate_debts_for_period()
"""

from decimal import Decimal

import pytest

from academy.tests.factories import EnrollmentFactory, GroupFactory, StudentFactory
from billing.periods import FixedClock
from billing.services import DebtGenerationService

PERIOD = "2025-03"
FEE = Decimal("150000.00")


@pytest.fixture
def period():
    return PERIOD


@pytest.fixture
def clock():
    """Clock fixed to the test period."""
    return FixedClock(PERIOD)


@pytest.fixture
def service(clock):
    """Debt generation service using the fixed clock."""
    return DebtGenerationService(clock=clock)


@pytest.fixture
def group(db):
    """Group with the standard monthly fee."""
    return GroupFactory(monthly_fee=FEE)


@pytest.fixture
def enrolled_student(db, group):
    """
    Factory fixture creating a student enrolled in ``group``.

    Example:
        student = enrolled_student(balance=Decimal("200000.00"))
    """

    def _create(balance=Decimal("0.00"), in_group=None):
        student = StudentFactory(balance=balance)
        EnrollmentFactory(student=student, group=in_group or group)
        return student

    return _create
