# backend/picadero/services/availability_service.py
"""
Availability lookups for the booking screens.

Answers which teachers and which horses can take a lesson on a date and
interval, and how busy each of them is over a date range. These are
advisory reads; booking re-validates everything.
"""

from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.exceptions import ValidationException
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import AvailableHorse, AvailableTeacher, HorseOccupancy, TeacherOccupancy
from .base import BaseService

logger = logging.getLogger(__name__)

OPEN_RANGE_DAYS = 30


class AvailabilityService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.horse_repository = RepositoryFactory.create_horse_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @staticmethod
    def _check_interval(start: time, end: time) -> None:
        if end <= start:
            raise ValidationException(
                "End time must be after start time", code="INVALID_TIME_RANGE"
            )

    @BaseService.measure_operation("available_teachers")
    def available_teachers(self, fecha: date, start: time, end: time) -> List[AvailableTeacher]:
        """
        Active teachers who work the whole interval and have no overlapping lesson.

        While no working hours are configured at all, every active teacher
        counts as working.
        """
        self._check_interval(start, end)
        teachers = self.teacher_repository.get_active()
        if self.teacher_repository.has_any_working_hours():
            working = set(self.teacher_repository.get_covering_working_hours(fecha.weekday(), start, end))
            teachers = [t for t in teachers if t.id in working]

        busy = set(self.lesson_repository.get_busy_teacher_ids([t.id for t in teachers], fecha, start, end))
        return [
            AvailableTeacher(id=t.id, name=t.display_name, especialidad=t.especialidad)
            for t in teachers
            if t.id not in busy
        ]

    @BaseService.measure_operation("available_horses")
    def available_horses(self, fecha: date, start: time, end: time) -> List[AvailableHorse]:
        self._check_interval(start, end)
        busy = set(self.lesson_repository.get_busy_horse_ids(fecha, start, end))
        day_counts = self.lesson_repository.get_horse_day_counts(fecha)

        available = []
        for horse in self.horse_repository.get_bookable():
            if horse.id in busy:
                continue
            lessons_today = int(day_counts.get(horse.id, 0))
            limit = int(horse.limite_clases_dia or 0)
            if lessons_today >= limit:
                continue
            available.append(
                AvailableHorse(
                    id=horse.id,
                    nombre=horse.nombre,
                    tipo=horse.tipo,
                    lessons_today=lessons_today,
                    limite_clases_dia=limit,
                )
            )
        return available

    @staticmethod
    def _check_range(start: Optional[date], end: Optional[date]) -> None:
        if start is not None and end is not None and end < start:
            raise ValidationException("End date must not be before start date", code="INVALID_DATE_RANGE")

    @BaseService.measure_operation("horse_occupancy")
    def horse_occupancy(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[HorseOccupancy]:
        """
        Programada lessons per enabled horse in [start, end].

        Usage is measured against the daily cap over the days of the range;
        an open range is treated as a 30 day month.
        """
        self._check_range(start, end)
        days = (end - start).days + 1 if start is not None and end is not None else OPEN_RANGE_DAYS
        counts = self.lesson_repository.count_scheduled_by_horse(start, end)

        report = []
        for horse in self.horse_repository.get_active():
            scheduled = counts.get(horse.id, 0)
            limit = int(horse.limite_clases_dia or 0)
            capacity = limit * days
            report.append(
                HorseOccupancy(
                    id=horse.id,
                    nombre=horse.nombre,
                    estado=horse.estado,
                    scheduled=scheduled,
                    limite_clases_dia=limit,
                    capacity=capacity,
                    usage_pct=round(scheduled * 100 / capacity, 2) if capacity else 0.0,
                )
            )
        return report

    @BaseService.measure_operation("teacher_occupancy")
    def teacher_occupancy(
        self, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[TeacherOccupancy]:
        """Programada lessons per active teacher in [start, end]."""
        self._check_range(start, end)
        counts = self.lesson_repository.count_scheduled_by_teacher(start, end)
        return [
            TeacherOccupancy(id=t.id, name=t.display_name, scheduled=counts.get(t.id, 0))
            for t in self.teacher_repository.get_active()
        ]
