# backend/picadero/services/credit_reconciliation_service.py
"""
Daily recount of escuelita class usage.

Escuelita usage is derived, not booked: a lesson counts as used once its
date has passed. The job resets ``clases_usadas`` on every active
escuelita subscription to the number of the rider's programada lessons
dated strictly before today, writing only when the value differs.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import RoleName
from ..core.exceptions import RepositoryException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.billing import ReconciliationReport
from .base import BaseService

logger = logging.getLogger(__name__)


class CreditReconciliationService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @BaseService.measure_operation("reconcile_escuelita_usage")
    def reconcile(self) -> ReconciliationReport:
        today = self.clock.today()
        report = ReconciliationReport(success=True)

        for user in self.user_repository.get_active_by_roles([RoleName.ESCUELITA]):
            for subscription in self.subscription_repository.get_active_for_user(user.id):
                report.checked += 1
                try:
                    actual = self.lesson_repository.count_active_before(user.id, today)
                    recorded = int(subscription.clases_usadas or 0)
                    if actual == recorded:
                        continue
                    with self.transaction():
                        self.subscription_repository.set_used(subscription.id, actual)
                    report.updated += 1
                    report.details.append(
                        {
                            "user_id": user.id,
                            "subscription_id": subscription.id,
                            "previous": recorded,
                            "current": actual,
                        }
                    )
                except (RepositoryException, ServiceException) as exc:
                    self.logger.error(
                        f"Reconciling subscription {subscription.id} failed: {str(exc)}",
                        extra={"user_id": user.id, "subscription_id": subscription.id},
                    )
                    prometheus_metrics.inc_batch_failure("credit_reconciliation")
                    report.errors.append({"subscription_id": subscription.id, "error": str(exc)})

        self.log_operation(
            "reconcile_escuelita_usage",
            checked=report.checked,
            updated=report.updated,
            failed=len(report.errors),
        )
        return report
