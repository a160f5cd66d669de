from django.core.management.base import BaseCommand, CommandError

from billing.exceptions import InvalidPeriod
from billing.services import DebtGenerationService


class Command(BaseCommand):
    help = (
        "Generate monthly debts for every enrolled student and settle them "
        "against student balances. Safe to run more than once per period."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--period",
            help="Billing period as YYYY-MM (default: current month)",
        )
        parser.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Number of worker threads (default: BILLING_MAX_WORKERS)",
        )

    def handle(self, *args, **options):
        period = options.get("period")
        workers = options.get("workers")

        if workers is not None and workers < 1:
            raise CommandError("--workers must be at least 1")

        try:
            report = DebtGenerationService().generate_debts_for_period(
                period=period,
                max_workers=workers,
            )
        except InvalidPeriod as e:
            raise CommandError(e.message)

        for outcome in report.failed:
            self.stderr.write(
                f"Student {outcome.student_id}: [{outcome.error_code}] {outcome.error}"
            )

        summary = (
            f"Period {report.period}: created={report.created_count}, "
            f"skipped={report.skipped_count}, failed={report.failed_count}"
        )
        if report.failed_count:
            self.stdout.write(self.style.WARNING(summary))
        else:
            self.stdout.write(self.style.SUCCESS(summary))
