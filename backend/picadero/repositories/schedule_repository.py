# backend/picadero/repositories/schedule_repository.py
import logging
from typing import List

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.schedule import FixedScheduleSlot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseRepository[FixedScheduleSlot]):
    """Fixed weekly slots of riders."""

    def __init__(self, db: Session):
        super().__init__(db, FixedScheduleSlot)

    def get_active_for_user(self, user_id: str) -> List[FixedScheduleSlot]:
        query = (
            self.db.query(FixedScheduleSlot)
            .filter(FixedScheduleSlot.user_id == user_id, FixedScheduleSlot.activo.is_(True))
            .order_by(FixedScheduleSlot.dia_semana, FixedScheduleSlot.hora_inicio)
        )
        return self._execute_query(query)

    def deactivate_for_user(self, user_id: str) -> int:
        stmt = (
            update(FixedScheduleSlot)
            .where(FixedScheduleSlot.user_id == user_id, FixedScheduleSlot.activo.is_(True))
            .values(activo=False)
            .execution_options(synchronize_session="fetch")
        )
        try:
            return self.db.execute(stmt).rowcount or 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error deactivating fixed slots for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to deactivate fixed slots: {str(e)}")
