"""
Billing services.

This module provides:
- DebtGenerationService: Monthly debt generation and balance settlement
- PaymentService: Manually recorded payments (balance top-ups, debt payments)

Usage:
    from billing.services import DebtGenerationService

    report = DebtGenerationService().generate_debts_for_period()

    from billing.services import PaymentService

    result = PaymentService.top_up_balance(student.id, Decimal("200000"))
"""

from billing.services.debt_generation import DebtGenerationService
from billing.services.payment_service import PaymentService

__all__ = [
    "DebtGenerationService",
    "PaymentService",
]
