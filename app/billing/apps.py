"""
Billing app configuration.

This app provides the monthly tuition billing core:
- Debt generation with balance settlement
- Balance ledger for student credit
- Manual payment recording
"""

from django.apps import AppConfig


class BillingConfig(AppConfig):
    """Configuration for the billing application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "billing"
    verbose_name = "Billing"
