# backend/picadero/tasks/billing_tasks.py
"""
Celery tasks for monthly billing.
"""

import logging
from typing import Any, Dict

from picadero.database import SessionLocal
from picadero.services.billing_service import BillingService
from picadero.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="picadero.tasks.billing_tasks.generate_monthly_invoices", bind=True)
def generate_monthly_invoices(self: Any) -> Dict[str, Any]:
    """
    Issue the current month's invoices for pension riders.

    Safe to re-run; invoices already issued for the month are skipped.
    """
    db = SessionLocal()
    try:
        report = BillingService(db).generate_monthly_invoices()
        logger.info(
            "Monthly invoice run finished",
            extra={
                "month": report.month,
                "year": report.year,
                "invoices_created": report.created,
                "failed": len(report.errors),
            },
        )
        return report.model_dump(mode="json")
    finally:
        db.close()
