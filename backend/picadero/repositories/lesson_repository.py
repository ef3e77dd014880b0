# backend/picadero/repositories/lesson_repository.py
"""
Lesson Repository

Conflict and capacity queries used by the reservation pipeline, the
recurring generator and availability lookups. Every conflict query only
considers ``programada`` lessons and accepts an ``exclude_lesson_id`` so a
lesson being rescheduled never conflicts with itself.

Two intervals [s1, e1) and [s2, e2) on the same date overlap when
``s1 < e2 and e1 > s2``; touching intervals do not overlap.
"""

from datetime import date, time
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.enums import LessonStatus
from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE = LessonStatus.PROGRAMADA.value


class LessonRepository(BaseRepository[Lesson]):
    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def _active_on(self, fecha: date, exclude_lesson_id: Optional[str]) -> Query:
        query = self.db.query(Lesson).filter(Lesson.fecha == fecha, Lesson.estado == _ACTIVE)
        if exclude_lesson_id:
            query = query.filter(Lesson.id != exclude_lesson_id)
        return query

    @staticmethod
    def _overlapping(query: Query, start: time, end: time) -> Query:
        return query.filter(Lesson.hora_inicio < end, Lesson.hora_fin > start)

    def get_teacher_conflicts(
        self,
        teacher_id: str,
        fecha: date,
        start: time,
        end: time,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[Lesson]:
        query = self._active_on(fecha, exclude_lesson_id).filter(Lesson.profesor_id == teacher_id)
        return self._execute_query(self._overlapping(query, start, end).order_by(Lesson.hora_inicio))

    def get_horse_conflicts(
        self,
        horse_id: str,
        fecha: date,
        start: time,
        end: time,
        exclude_lesson_id: Optional[str] = None,
        ignore_user_ids: Iterable[str] = (),
    ) -> List[Lesson]:
        """
        Overlapping lessons on a horse.

        Args:
            ignore_user_ids: Riders whose lessons are left out of the result
        """
        query = self._active_on(fecha, exclude_lesson_id).filter(Lesson.caballo_id == horse_id)
        ignored = [user_id for user_id in ignore_user_ids if user_id]
        if ignored:
            query = query.filter(Lesson.user_id.notin_(ignored))
        return self._execute_query(self._overlapping(query, start, end).order_by(Lesson.hora_inicio))

    def get_user_horse_conflicts(
        self,
        user_id: str,
        horse_id: str,
        fecha: date,
        start: time,
        end: time,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[Lesson]:
        """Overlapping lessons a specific rider holds on a specific horse."""
        query = self._active_on(fecha, exclude_lesson_id).filter(
            Lesson.caballo_id == horse_id, Lesson.user_id == user_id
        )
        return self._execute_query(self._overlapping(query, start, end))

    def count_horse_lessons_on(
        self, horse_id: str, fecha: date, exclude_lesson_id: Optional[str] = None
    ) -> int:
        query = self._active_on(fecha, exclude_lesson_id).filter(Lesson.caballo_id == horse_id)
        try:
            return query.count()
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting horse lessons: {str(e)}")
            raise RepositoryException(f"Failed to count lessons: {str(e)}")

    def get_user_lessons_on(
        self, user_id: str, fecha: date, exclude_lesson_id: Optional[str] = None
    ) -> List[Lesson]:
        query = self._active_on(fecha, exclude_lesson_id).filter(Lesson.user_id == user_id)
        return self._execute_query(query.order_by(Lesson.hora_inicio))

    def has_user_lesson_at(self, user_id: str, teacher_id: str, fecha: date, start: time) -> bool:
        """True when the rider already holds this exact lesson slot."""
        query = self._active_on(fecha, None).filter(
            Lesson.user_id == user_id,
            Lesson.profesor_id == teacher_id,
            Lesson.hora_inicio == start,
        )
        try:
            return query.first() is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking existing lesson: {str(e)}")
            raise RepositoryException(f"Failed to check lesson: {str(e)}")

    def count_active_before(self, user_id: str, before: date) -> int:
        """Programada lessons of a rider dated strictly before ``before``."""
        query = self.db.query(func.count(Lesson.id)).filter(
            Lesson.user_id == user_id,
            Lesson.estado == _ACTIVE,
            Lesson.fecha < before,
        )
        return int(self._execute_scalar(query) or 0)

    def get_teacher_student_ids(self, teacher_id: str, start: date, end: date) -> List[str]:
        """Distinct riders with a programada lesson with the teacher in [start, end]."""
        query = self.db.query(distinct(Lesson.user_id)).filter(
            Lesson.profesor_id == teacher_id,
            Lesson.estado == _ACTIVE,
            Lesson.fecha >= start,
            Lesson.fecha <= end,
        )
        return [row[0] for row in self._execute_query(query)]

    def get_busy_teacher_ids(
        self, teacher_ids: Sequence[str], fecha: date, start: time, end: time
    ) -> List[str]:
        if not teacher_ids:
            return []
        query = self.db.query(distinct(Lesson.profesor_id)).filter(
            Lesson.profesor_id.in_(list(teacher_ids)),
            Lesson.fecha == fecha,
            Lesson.estado == _ACTIVE,
        )
        query = self._overlapping(query, start, end)
        return [row[0] for row in self._execute_query(query)]

    def get_horse_day_counts(self, fecha: date) -> dict:
        """Map of horse id to programada lesson count on ``fecha``."""
        query = (
            self.db.query(Lesson.caballo_id, func.count(Lesson.id))
            .filter(Lesson.fecha == fecha, Lesson.estado == _ACTIVE)
            .group_by(Lesson.caballo_id)
        )
        return {horse_id: count for horse_id, count in self._execute_query(query)}

    def get_busy_horse_ids(self, fecha: date, start: time, end: time) -> List[str]:
        query = self.db.query(distinct(Lesson.caballo_id)).filter(
            Lesson.fecha == fecha, Lesson.estado == _ACTIVE
        )
        query = self._overlapping(query, start, end)
        return [row[0] for row in self._execute_query(query)]

    @staticmethod
    def _in_range(query: Query, start: Optional[date], end: Optional[date]) -> Query:
        if start is not None:
            query = query.filter(Lesson.fecha >= start)
        if end is not None:
            query = query.filter(Lesson.fecha <= end)
        return query

    @staticmethod
    def _chronological(query: Query) -> Query:
        return query.order_by(Lesson.fecha, Lesson.hora_inicio, Lesson.id)

    def get_user_scheduled(
        self, user_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[Lesson]:
        """A rider's programada lessons, optionally bounded by date (inclusive)."""
        query = self.db.query(Lesson).filter(Lesson.user_id == user_id, Lesson.estado == _ACTIVE)
        return self._execute_query(self._chronological(self._in_range(query, start, end)))

    def get_agenda(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        teacher_id: Optional[str] = None,
        horse_id: Optional[str] = None,
    ) -> List[Lesson]:
        """Programada and completada lessons of the academy, filtered as given."""
        query = self.db.query(Lesson).filter(
            Lesson.estado.in_([_ACTIVE, LessonStatus.COMPLETADA.value])
        )
        if teacher_id:
            query = query.filter(Lesson.profesor_id == teacher_id)
        if horse_id:
            query = query.filter(Lesson.caballo_id == horse_id)
        return self._execute_query(self._chronological(self._in_range(query, start, end)))

    def count_scheduled_by_horse(self, start: Optional[date], end: Optional[date]) -> Dict[str, int]:
        query = self.db.query(Lesson.caballo_id, func.count(Lesson.id)).filter(Lesson.estado == _ACTIVE)
        query = self._in_range(query, start, end).group_by(Lesson.caballo_id)
        return {horse_id: int(count) for horse_id, count in self._execute_query(query)}

    def count_scheduled_by_teacher(self, start: Optional[date], end: Optional[date]) -> Dict[str, int]:
        query = self.db.query(Lesson.profesor_id, func.count(Lesson.id)).filter(Lesson.estado == _ACTIVE)
        query = self._in_range(query, start, end).group_by(Lesson.profesor_id)
        return {teacher_id: int(count) for teacher_id, count in self._execute_query(query)}
