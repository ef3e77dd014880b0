# backend/picadero/repositories/teacher_repository.py
from datetime import time
import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.teacher import Teacher, TeacherWorkingHours
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TeacherRepository(BaseRepository[Teacher]):
    def __init__(self, db: Session):
        super().__init__(db, Teacher)

    def get_active(self) -> List[Teacher]:
        query = self.db.query(Teacher).filter(Teacher.activo.is_(True)).order_by(Teacher.id)
        return self._execute_query(query)

    def get_covering_working_hours(self, weekday: int, start: time, end: time) -> List[str]:
        """Teacher ids with an active working window on ``weekday`` containing [start, end)."""
        query = self.db.query(TeacherWorkingHours.profesor_id).filter(
            TeacherWorkingHours.activo.is_(True),
            TeacherWorkingHours.dia_semana == weekday,
            TeacherWorkingHours.hora_inicio <= start,
            TeacherWorkingHours.hora_fin >= end,
        )
        return sorted({row[0] for row in self._execute_query(query)})

    def has_any_working_hours(self) -> bool:
        query = self.db.query(TeacherWorkingHours.id).filter(TeacherWorkingHours.activo.is_(True))
        return self._execute_scalar(query.limit(1)) is not None
