# backend/picadero/tasks/credit_tasks.py
"""
Celery tasks for class credits and recurring lessons.
"""

import logging
from typing import Any, Dict

from picadero.database import SessionLocal
from picadero.services.credit_reconciliation_service import CreditReconciliationService
from picadero.services.schedule_generator_service import ScheduleGeneratorService
from picadero.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="picadero.tasks.credit_tasks.reconcile_escuelita_usage", bind=True)
def reconcile_escuelita_usage(self: Any) -> Dict[str, Any]:
    db = SessionLocal()
    try:
        report = CreditReconciliationService(db).reconcile()
        logger.info(
            "Escuelita usage reconciled",
            extra={"checked": report.checked, "updated": report.updated},
        )
        return report.model_dump(mode="json")
    finally:
        db.close()


@celery_app.task(name="picadero.tasks.credit_tasks.generate_escuelita_lessons", bind=True)
def generate_escuelita_lessons(self: Any, user_id: str, month: str) -> Dict[str, Any]:
    """Expand a rider's fixed weekly slots into lessons for ``month`` (YYYY-MM)."""
    db = SessionLocal()
    try:
        result = ScheduleGeneratorService(db).generate_month(user_id, month)
        if not result.success:
            logger.warning(
                f"Lesson generation for {user_id} did not complete: {result.reason}",
                extra={"user_id": user_id, "target_month": month},
            )
        return result.to_response()
    finally:
        db.close()
