"""
Celery configuration for the billing backend.

Celery runs the scheduled work of the tuition center:
- Monthly debt generation (billing.tasks.generate_monthly_debts)

Schedules are stored in the database by django-celery-beat; the billing
migrations register the default crontab. Redis is the default broker and
result backend. Tasks are auto-discovered from all installed Django apps.

Usage:
    # Run a worker and the beat scheduler:
    celery -A config worker -l info
    celery -A config beat -l info

    # Trigger generation by hand:
    from billing.tasks import generate_monthly_debts
    generate_monthly_debts.delay(period="2025-03")

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
