# backend/picadero/services/schedule_generator_service.py
"""
Recurring schedule generator for escuelita riders.

Expands a rider's active weekly fixed slots into lessons for a target month.
Each lesson is created in its own transaction; a date that conflicts or
fails to insert is skipped and reported, never fatal.

Generation does not touch class usage. Usage for escuelita subscriptions is
recounted from past lessons by the daily credit reconciliation.
"""

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import LessonStatus, RejectionReason, RoleName
from ..core.exceptions import RepositoryException, ServiceException
from ..models.schedule import FixedScheduleSlot
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import GenerationReport, LessonRead
from ..schemas.results import OperationResult
from ..utils.dates import add_minutes, parse_month, weekday_dates
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class SlotInput:
    """New weekly slot for ``replace_fixed_slots``."""

    teacher_id: str
    weekday: int
    start: time
    end: Optional[time] = None
    horse_id: Optional[str] = None


class ScheduleGeneratorService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)
        self.horse_repository = RepositoryFactory.create_horse_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)

    @BaseService.measure_operation("generate_monthly_lessons")
    def generate_month(self, user_id: str, month: str) -> OperationResult:
        """
        Create the rider's lessons for ``month`` (``YYYY-MM``) from their fixed slots.

        Re-running for the same month creates nothing new: dates where the
        rider already holds the slot are skipped.
        """
        try:
            year, month_number = parse_month(month)
        except ValueError as exc:
            return OperationResult.fail(RejectionReason.INVALID_MONTH, str(exc))

        user = self.user_repository.get_by_id(user_id)
        if user is None:
            return OperationResult.fail(RejectionReason.USER_NOT_FOUND, "User not found")
        if user.rol != RoleName.ESCUELITA.value:
            return OperationResult.fail(
                RejectionReason.ROLE_NOT_ALLOWED,
                "Monthly lessons are only generated for escuelita riders",
                details={"role": user.rol},
            )

        slots = self.schedule_repository.get_active_for_user(user_id)
        if not slots:
            return OperationResult.fail(
                RejectionReason.NO_FIXED_SCHEDULE, "No fixed weekly schedule configured"
            )

        subscriptions = self.subscription_repository.get_active_for_user(user_id)
        if not subscriptions:
            return OperationResult.fail(RejectionReason.NO_ACTIVE_PLAN, "No active plan")
        subscription = subscriptions[0]

        included = int(subscription.clases_incluidas or 0)
        per_slot = settings.lessons_per_slot_per_month
        if included % per_slot != 0 or included // per_slot != len(slots):
            return OperationResult.fail(
                RejectionReason.SLOT_COUNT_MISMATCH,
                f"Plan includes {included} classes a month but {len(slots)} weekly slots are set",
                details={"expected_slots": included / per_slot, "active_slots": len(slots)},
            )

        school_horse = None
        if any(slot.caballo_id is None for slot in slots):
            school_horse = self.horse_repository.get_first_school_horse()
            if school_horse is None:
                return OperationResult.fail(
                    RejectionReason.NO_SCHOOL_HORSE, "No school horse is available"
                )

        report = GenerationReport(success=False, user_id=user_id, year=year, month=month_number)
        attempted = 0
        for slot in slots:
            horse_id = slot.caballo_id or school_horse.id
            try:
                end = slot.hora_fin or add_minutes(slot.hora_inicio, settings.default_lesson_minutes)
            except ValueError as exc:
                report.skipped.append(f"Slot {slot.id}: {exc}")
                continue
            for fecha in weekday_dates(year, month_number, slot.dia_semana):
                if self._generate_one(report, user_id, slot, horse_id, fecha, end):
                    attempted += 1

        report.classes_created = len(report.lessons)
        report.success = report.classes_created > 0 or attempted == 0
        self.log_operation(
            "generate_monthly_lessons",
            user_id=user_id,
            target_month=month,
            lessons_created=report.classes_created,
            skipped=len(report.skipped),
        )
        if report.success:
            return OperationResult.ok(report)
        return OperationResult(
            success=False,
            data=report,
            reason=RejectionReason.NO_LESSONS_CREATED.value,
            message="No lessons could be created for the month",
        )

    def _generate_one(
        self,
        report: GenerationReport,
        user_id: str,
        slot: FixedScheduleSlot,
        horse_id: str,
        fecha: date,
        end: time,
    ) -> bool:
        """Try one date; returns False when the rider already holds the slot."""
        label = fecha.isoformat()
        if self.lesson_repository.has_user_lesson_at(user_id, slot.profesor_id, fecha, slot.hora_inicio):
            report.skipped.append(f"{label}: already scheduled")
            return False
        if self.lesson_repository.get_teacher_conflicts(slot.profesor_id, fecha, slot.hora_inicio, end):
            report.skipped.append(f"{label}: teacher unavailable")
            return True
        if self.lesson_repository.get_horse_conflicts(horse_id, fecha, slot.hora_inicio, end):
            report.skipped.append(f"{label}: horse unavailable")
            return True

        try:
            with self.transaction():
                lesson = self.lesson_repository.create(
                    user_id=user_id,
                    profesor_id=slot.profesor_id,
                    caballo_id=horse_id,
                    fecha=fecha,
                    hora_inicio=slot.hora_inicio,
                    hora_fin=end,
                    estado=LessonStatus.PROGRAMADA.value,
                )
        except (RepositoryException, ServiceException) as exc:
            self.logger.warning(
                f"Could not create lesson on {label}: {str(exc)}", extra={"user_id": user_id}
            )
            report.skipped.append(f"{label}: could not be created")
            return True
        report.lessons.append(LessonRead.model_validate(lesson))
        return True

    @BaseService.measure_operation("replace_fixed_slots")
    def replace_fixed_slots(self, user_id: str, slots: Sequence[SlotInput]) -> OperationResult:
        """Supersede the rider's active weekly slots with a new set."""
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            return OperationResult.fail(RejectionReason.USER_NOT_FOUND, "User not found")
        if user.rol != RoleName.ESCUELITA.value:
            return OperationResult.fail(
                RejectionReason.ROLE_NOT_ALLOWED,
                "Fixed weekly schedules are only for escuelita riders",
                details={"role": user.rol},
            )

        created: List[str] = []
        try:
            with self.transaction():
                self.schedule_repository.deactivate_for_user(user_id)
                for slot in slots:
                    row = self.schedule_repository.create(
                        user_id=user_id,
                        profesor_id=slot.teacher_id,
                        caballo_id=slot.horse_id,
                        dia_semana=slot.weekday,
                        hora_inicio=slot.start,
                        hora_fin=slot.end,
                        activo=True,
                    )
                    created.append(row.id)
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Replacing fixed slots failed for {user_id}: {str(exc)}")
            return OperationResult.fail(
                RejectionReason.STORE_ERROR, "The schedule could not be saved, please try again"
            )

        self.log_operation("replace_fixed_slots", user_id=user_id, slots=len(created))
        return OperationResult.ok({"slot_ids": created})
