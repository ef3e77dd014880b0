"""
Celery tasks package for the Picadero backend.

This package contains the academy's scheduled jobs:
- Monthly invoice generation for pension riders
- Daily escuelita usage reconciliation
- Monthly lesson generation from fixed weekly slots
"""

from picadero.tasks.billing_tasks import generate_monthly_invoices
from picadero.tasks.celery_app import BaseTask, celery_app
from picadero.tasks.credit_tasks import generate_escuelita_lessons, reconcile_escuelita_usage

__all__ = [
    "celery_app",
    "BaseTask",
    "generate_monthly_invoices",
    "reconcile_escuelita_usage",
    "generate_escuelita_lessons",
]
