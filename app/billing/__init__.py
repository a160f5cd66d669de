"""
Billing app for monthly tuition debts and payments.

This app handles:
- Monthly debt generation per student, settled against the student's balance
- Idempotent reruns (one debt per student per period)
- Manual balance top-ups and debt payments
- Scheduled generation through Celery beat

Related apps:
    - academy: students, groups and enrollments being billed

Usage:
    from billing.services import DebtGenerationService

    report = DebtGenerationService().generate_debts_for_period("2025-03")
    print(report.to_dict())
"""
