"""
Factory Boy factories for billing test data.

Usage:
    from billing.tests.factories import DebtFactory, PaymentFactory

    # Unpaid debt for a new student
    debt = DebtFactory(period="2025-03")

    # Partially paid debt
    debt = DebtFactory(
        amount=Decimal("90000.00"),
        paid_amount=Decimal("60000.00"),
        status=DebtStatus.PARTIAL,
    )
"""

from decimal import Decimal

import factory

from academy.tests.factories import GroupFactory, StudentFactory
from billing.models import Debt, DebtStatus, Payment, PaymentType


class DebtFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating Debt instances.

    Default creates an unpaid debt for the group's full fee.
    """

    class Meta:
        model = Debt
        skip_postgeneration_save = True

    student = factory.SubFactory(StudentFactory)
    group = factory.SubFactory(GroupFactory)
    period = "2025-03"
    amount = factory.LazyAttribute(lambda o: o.group.monthly_fee)
    paid_amount = Decimal("0.00")
    is_paid = False
    status = DebtStatus.UNPAID


class PaymentFactory(factory.django.DjangoModelFactory):
    """Factory for creating Payment instances (balance top-ups by default)."""

    class Meta:
        model = Payment
        skip_postgeneration_save = True

    student = factory.SubFactory(StudentFactory)
    amount = Decimal("100000.00")
    type = PaymentType.BALANCE
    note = "cash"
    debt = None
