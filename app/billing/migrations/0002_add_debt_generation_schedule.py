"""
Add celery-beat schedule for monthly debt generation.

Generation runs every day shortly after midnight. Only the first run of a
month creates debts; later runs find every (student, period) pair already
generated and report them as skipped.
"""

from django.db import migrations

TASK_NAME = "Generate Monthly Debts"


def create_periodic_task(apps, schema_editor):
    """Create the daily periodic task for debt generation."""
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="5",
        hour="0",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "billing.tasks.generate_monthly_debts",
            "crontab": schedule,
            "enabled": True,
            "description": (
                "Generates the current month's debt for every enrolled student, "
                "settling it against their balance. Safe to rerun."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("billing", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
