# backend/picadero/repositories/horse_repository.py
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.enums import HorseStatus, HorseType
from ..models.horse import Horse
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class HorseRepository(BaseRepository[Horse]):
    def __init__(self, db: Session):
        super().__init__(db, Horse)

    def get_bookable(self) -> List[Horse]:
        """Horses that are enabled and in ``activo`` state."""
        query = (
            self.db.query(Horse)
            .filter(Horse.activo.is_(True), Horse.estado == HorseStatus.ACTIVO.value)
            .order_by(Horse.nombre, Horse.id)
        )
        return self._execute_query(query)

    def get_first_school_horse(self) -> Optional[Horse]:
        query = (
            self.db.query(Horse)
            .filter(
                Horse.tipo == HorseType.ESCUELA.value,
                Horse.activo.is_(True),
                Horse.estado == HorseStatus.ACTIVO.value,
            )
            .order_by(Horse.nombre, Horse.id)
            .limit(1)
        )
        found = self._execute_query(query)
        return found[0] if found else None

    def get_active(self) -> List[Horse]:
        """Enabled horses in any health state."""
        query = self.db.query(Horse).filter(Horse.activo.is_(True)).order_by(Horse.nombre, Horse.id)
        return self._execute_query(query)

    def get_owned_active(self, user_id: str) -> List[Horse]:
        """Enabled horses the rider owns or co-owns."""
        query = (
            self.db.query(Horse)
            .filter(
                Horse.activo.is_(True),
                or_(Horse.dueno_id == user_id, Horse.dueno_id2 == user_id),
            )
            .order_by(Horse.nombre, Horse.id)
        )
        return self._execute_query(query)
