# backend/picadero/repositories/monthly_credit_repository.py
"""
Monthly Credit Repository

Data access for ``clases_mensuales``: one row per (subscription, month,
year). Rows are created with insert-or-ignore so two requests racing to
create the same month converge on a single record.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.subscription import MonthlyCreditRecord
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_PERIOD_COLUMNS = ("suscripcion_id", "mes", "anio")


class MonthlyCreditRepository(BaseRepository[MonthlyCreditRecord]):
    def __init__(self, db: Session):
        super().__init__(db, MonthlyCreditRecord)

    def get_for_period(self, subscription_id: str, month: int, year: int) -> Optional[MonthlyCreditRecord]:
        try:
            return (
                self.db.query(MonthlyCreditRecord)
                .filter(
                    MonthlyCreditRecord.suscripcion_id == subscription_id,
                    MonthlyCreditRecord.mes == month,
                    MonthlyCreditRecord.anio == year,
                )
                .populate_existing()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading ledger row {subscription_id} {year}-{month}: {str(e)}")
            raise RepositoryException(f"Failed to load monthly credit record: {str(e)}")

    def get_or_create(self, subscription_id: str, month: int, year: int) -> MonthlyCreditRecord:
        existing = self.get_for_period(subscription_id, month, year)
        if existing is not None:
            return existing

        inserted = self.insert_ignoring_conflict(
            {"suscripcion_id": subscription_id, "mes": month, "anio": year, "clases_usadas": 0},
            _PERIOD_COLUMNS,
        )
        if inserted:
            self.logger.debug(f"Created ledger row for {subscription_id} {year}-{month:02d}")

        record = self.get_for_period(subscription_id, month, year)
        if record is None:
            raise RepositoryException("Monthly credit record not found after insert")
        return record
