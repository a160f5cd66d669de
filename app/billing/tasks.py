"""
Celery tasks for billing.

Tasks:
- generate_monthly_debts: Periodic debt generation for the current month

Celery Beat Schedule:
    Registered by migration 0002_add_debt_generation_schedule as a daily
    crontab at 00:05. The first run of a month creates the debts; the
    remaining runs report every student as skipped.

Usage:
    from billing.tasks import generate_monthly_debts

    generate_monthly_debts.delay()                 # current month
    generate_monthly_debts.delay(period="2025-03") # back-fill
"""

from __future__ import annotations

import logging

from celery import shared_task

from core.exceptions import ValidationError

from billing.exceptions import InvalidPeriod

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def generate_monthly_debts(
    self,
    period: str | None = None,
    max_workers: int | None = None,
) -> dict:
    """
    Generate and settle debts for a billing period.

    Args:
        period: Billing period ``YYYY-MM`` (default: current month)
        max_workers: Worker threads (default: settings.BILLING_MAX_WORKERS)

    Returns:
        Dict with:
        - status: "completed", "completed_with_failures" or "failed"
        - period: The billing period processed
        - created / skipped / failed: Per-outcome student counts
        - failures: Failed student outcomes
        - error / error_code: Set when status is "failed"
    """
    from billing.services import DebtGenerationService

    logger.info(
        "Starting scheduled debt generation",
        extra={
            "period": period,
            "task_id": self.request.id,
        },
    )

    try:
        report = DebtGenerationService().generate_debts_for_period(
            period=period,
            max_workers=max_workers,
        )
    except (InvalidPeriod, ValidationError) as e:
        logger.error(
            f"Debt generation rejected: {e}",
            extra={"period": period, "error_code": e.error_code},
        )
        return {
            "status": "failed",
            "period": period,
            "error": e.message,
            "error_code": e.error_code,
        }
    except Exception as e:
        logger.exception(
            f"Unexpected error during debt generation: {e}",
            extra={"period": period},
        )
        return {
            "status": "failed",
            "period": period,
            "error": str(e),
            "error_code": "UNEXPECTED_ERROR",
        }

    summary = report.to_dict()
    summary["status"] = "completed_with_failures" if report.failed_count else "completed"

    if report.failed_count:
        logger.warning(
            f"Debt generation for {report.period} finished with "
            f"{report.failed_count} failures",
            extra={"period": report.period, "failed": report.failed_count},
        )

    return summary
