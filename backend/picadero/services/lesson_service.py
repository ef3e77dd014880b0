# backend/picadero/services/lesson_service.py
"""
Lesson listings.

Read side of the lesson book: a rider's own scheduled lessons and the
academy agenda that teachers and administrators filter by date, teacher and
horse. Writes go through ReservationService.
"""

from datetime import date
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.exceptions import NotFoundException, ValidationException
from ..models.lesson import Lesson
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import LessonDetail, LessonRead
from .base import BaseService

logger = logging.getLogger(__name__)


class LessonService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @staticmethod
    def _check_range(start: Optional[date], end: Optional[date]) -> None:
        if start is not None and end is not None and end < start:
            raise ValidationException("End date must not be before start date", code="INVALID_DATE_RANGE")

    @staticmethod
    def _detail(lesson: Lesson) -> LessonDetail:
        data = LessonRead.model_validate(lesson).model_dump()
        return LessonDetail(
            **data,
            rider_name=lesson.rider.full_name if lesson.rider else lesson.user_id,
            teacher_name=lesson.teacher.display_name if lesson.teacher else lesson.profesor_id,
            horse_name=lesson.horse.nombre if lesson.horse else lesson.caballo_id,
        )

    @BaseService.measure_operation("user_lessons")
    def for_user(
        self, user_id: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[LessonDetail]:
        """
        A rider's programada lessons in date order.

        Raises:
            NotFoundException: unknown rider
            ValidationException: ``end`` before ``start``
        """
        self._check_range(start, end)
        if self.user_repository.get_by_id(user_id) is None:
            raise NotFoundException(f"User {user_id} not found", code="USER_NOT_FOUND")
        lessons = self.lesson_repository.get_user_scheduled(user_id, start, end)
        return [self._detail(lesson) for lesson in lessons]

    @BaseService.measure_operation("agenda")
    def agenda(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        teacher_id: Optional[str] = None,
        horse_id: Optional[str] = None,
    ) -> List[LessonDetail]:
        """Programada and completada lessons of the academy in date order."""
        self._check_range(start, end)
        lessons = self.lesson_repository.get_agenda(start, end, teacher_id=teacher_id, horse_id=horse_id)
        return [self._detail(lesson) for lesson in lessons]
