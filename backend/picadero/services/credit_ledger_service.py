# backend/picadero/services/credit_ledger_service.py
"""
Credit ledger for pension tiers.

Pension subscriptions are open-ended, so their allotment resets every
calendar month. Usage is tracked in one ``clases_mensuales`` row per
(subscription, month, year); the allotment itself always comes from the
plan's ``clases_mes``.

Counters move with store-side atomic updates so two concurrent bookings
never lose an increment.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..models.subscription import MonthlyCreditRecord
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import CreditBalance
from .base import BaseService

logger = logging.getLogger(__name__)


class CreditLedgerService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.ledger_repository = RepositoryFactory.create_monthly_credit_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)

    def get_or_create(self, subscription_id: str, month: int, year: int) -> MonthlyCreditRecord:
        """Return the ledger row for the period, creating it with zero usage if absent."""
        return self.ledger_repository.get_or_create(subscription_id, month, year)

    # Billing initialises next month's row when it issues the invoice.
    initialize_month = get_or_create

    def available(self, subscription_id: str, month: int, year: int) -> CreditBalance:
        """
        Classes left for the subscription in the given month.

        A missing subscription or plan yields an all-zero balance.
        """
        subscription = self.subscription_repository.get_by_id(subscription_id)
        if subscription is None or subscription.plan is None:
            return CreditBalance(included=0, used=0, available=0)

        included = int(subscription.plan.clases_mes or 0)
        # A month nobody has booked yet has no row; reading it must not create one.
        record = self.ledger_repository.get_for_period(subscription_id, month, year)
        used = int(record.clases_usadas or 0) if record else 0
        return CreditBalance(included=included, used=used, available=included - used)

    def increment(self, subscription_id: str, month: int, year: int) -> None:
        record = self.get_or_create(subscription_id, month, year)
        self.ledger_repository.adjust_counter(record.id, "clases_usadas", 1)
        prometheus_metrics.record_credit_movement("monthly", "consume")
        self.logger.debug(
            "Ledger increment",
            extra={"subscription_id": subscription_id, "month": month, "year": year},
        )

    def decrement(self, subscription_id: str, month: int, year: int) -> None:
        """Give one class back; usage never drops below zero."""
        record = self.get_or_create(subscription_id, month, year)
        changed = self.ledger_repository.adjust_counter(record.id, "clases_usadas", -1)
        if changed:
            prometheus_metrics.record_credit_movement("monthly", "refund")
        else:
            self.logger.info(
                "Ledger already at zero, nothing to refund",
                extra={"subscription_id": subscription_id, "month": month, "year": year},
            )
