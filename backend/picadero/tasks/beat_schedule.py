# backend/picadero/tasks/beat_schedule.py
"""
Celery Beat schedule for the Picadero backend.

Times are in the academy timezone configured on the Celery app.
"""

from typing import Any, Dict

from celery.schedules import crontab

CELERYBEAT_SCHEDULE: Dict[str, Dict[str, Any]] = {
    # Pension invoices for the new month, first thing on the 1st
    "generate-monthly-invoices": {
        "task": "picadero.tasks.billing_tasks.generate_monthly_invoices",
        "schedule": crontab(day_of_month=1, hour=0, minute=5),
        "options": {"queue": "billing"},
    },
    # Escuelita usage recount, after midnight so yesterday's lessons count
    "reconcile-escuelita-usage": {
        "task": "picadero.tasks.credit_tasks.reconcile_escuelita_usage",
        "schedule": crontab(hour=0, minute=30),
    },
}


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    return dict(CELERYBEAT_SCHEDULE)
