# backend/picadero/repositories/subscription_repository.py
"""
Subscription Repository

Queries around a rider's plan: the current active subscription, open-ended
pension subscriptions for billing and store-side updates of the escuelita
usage counter.
"""

from datetime import date
import logging
from typing import List, Optional, Sequence

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.subscription import Subscription
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class SubscriptionRepository(BaseRepository[Subscription]):
    def __init__(self, db: Session):
        super().__init__(db, Subscription)

    def get_active_for_user(self, user_id: str) -> List[Subscription]:
        query = (
            self.db.query(Subscription)
            .filter(Subscription.user_id == user_id, Subscription.activa.is_(True))
            .order_by(Subscription.fecha_inicio.desc(), Subscription.id.desc())
        )
        return self._execute_query(query)

    def get_current_for_user(self, user_id: str, on_date: date) -> Optional[Subscription]:
        """The active subscription whose validity window contains ``on_date``."""
        query = (
            self.db.query(Subscription)
            .filter(
                Subscription.user_id == user_id,
                Subscription.activa.is_(True),
                Subscription.fecha_inicio <= on_date,
                or_(Subscription.fecha_fin.is_(None), Subscription.fecha_fin >= on_date),
            )
            .order_by(Subscription.fecha_inicio.desc(), Subscription.id.desc())
        )
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading current subscription for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to load subscription: {str(e)}")

    def get_open_ended_active(self, user_ids: Sequence[str]) -> List[Subscription]:
        """Active subscriptions without an end date for the given riders."""
        if not user_ids:
            return []
        query = (
            self.db.query(Subscription)
            .filter(
                Subscription.user_id.in_(list(user_ids)),
                Subscription.activa.is_(True),
                Subscription.fecha_fin.is_(None),
            )
            .order_by(Subscription.user_id, Subscription.fecha_inicio)
        )
        return self._execute_query(query)

    def get_active_overlapping(
        self, user_ids: Sequence[str], start: date, end: date
    ) -> List[Subscription]:
        """Active subscriptions of the riders whose window intersects [start, end]."""
        if not user_ids:
            return []
        query = (
            self.db.query(Subscription)
            .filter(
                Subscription.user_id.in_(list(user_ids)),
                Subscription.activa.is_(True),
                Subscription.fecha_inicio <= end,
                or_(Subscription.fecha_fin.is_(None), Subscription.fecha_fin >= start),
            )
            .order_by(Subscription.id)
        )
        return self._execute_query(query)

    def deactivate_for_user(self, user_id: str) -> int:
        """Mark every active subscription of the rider inactive; returns the count."""
        stmt = (
            update(Subscription)
            .where(Subscription.user_id == user_id, Subscription.activa.is_(True))
            .values(activa=False)
            .execution_options(synchronize_session="fetch")
        )
        try:
            return self.db.execute(stmt).rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error deactivating subscriptions for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to deactivate subscriptions: {str(e)}")

    def increment_used(self, subscription_id: str) -> bool:
        return self.adjust_counter(subscription_id, "clases_usadas", 1)

    def decrement_used(self, subscription_id: str) -> bool:
        return self.adjust_counter(subscription_id, "clases_usadas", -1)

    def set_used(self, subscription_id: str, value: int) -> None:
        stmt = (
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .values(clases_usadas=value)
            .execution_options(synchronize_session=False)
        )
        try:
            self.db.execute(stmt)
            self._expire_row(subscription_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error setting usage for {subscription_id}: {str(e)}")
            raise RepositoryException(f"Failed to update subscription usage: {str(e)}")
