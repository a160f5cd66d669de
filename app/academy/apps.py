"""
Academy app configuration.
"""

from django.apps import AppConfig


class AcademyConfig(AppConfig):
    """Configuration for the academy application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "academy"
    verbose_name = "Academy"
