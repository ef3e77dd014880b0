# backend/picadero/services/payroll_service.py
"""
Teacher payroll.

A teacher earns a percentage of the plan price of every rider they taught
in the month. Riders are found through the teacher's programada lessons in
the month; each of the riders' active subscriptions overlapping the month
counts once, however many lessons it covered. Escuelita plans and the two
pension tiers are paid at the teacher's two separate percentages.
"""

from decimal import Decimal, ROUND_HALF_UP
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import PlanType
from ..core.exceptions import NotFoundException, RepositoryException, ServiceException
from ..repositories.factory import RepositoryFactory
from ..schemas.payroll import PayrollBucket, PayrollRun, PayrollSummary
from ..utils.dates import month_end, month_start
from .base import BaseService

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def bucket_for(plan_type: str) -> str:
    """Payroll bucket of a plan type."""
    if plan_type == PlanType.ESCUELITA.value:
        return "escuelita"
    return "pension"


class PayrollService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.teacher_repository = RepositoryFactory.create_teacher_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)

    @BaseService.measure_operation("calculate_teacher_payroll")
    def calculate(self, teacher_id: str, month: int, year: int) -> PayrollSummary:
        teacher = self.teacher_repository.get_by_id(teacher_id)
        if teacher is None:
            raise NotFoundException(f"Teacher {teacher_id} not found", code="TEACHER_NOT_FOUND")

        start, end = month_start(year, month), month_end(year, month)
        student_ids = self.lesson_repository.get_teacher_student_ids(teacher_id, start, end)
        subscriptions = self.subscription_repository.get_active_overlapping(student_ids, start, end)

        totals = {"escuelita": Decimal("0"), "pension": Decimal("0")}
        students = {"escuelita": set(), "pension": set()}
        counted = {"escuelita": 0, "pension": 0}
        seen = set()
        for subscription in subscriptions:
            if subscription.id in seen or subscription.plan is None:
                continue
            seen.add(subscription.id)
            bucket = bucket_for(subscription.plan.tipo)
            totals[bucket] += Decimal(subscription.plan.precio or 0)
            students[bucket].add(subscription.user_id)
            counted[bucket] += 1

        percentages = {
            "escuelita": Decimal(teacher.porcentaje_escuelita or 0),
            "pension": Decimal(teacher.porcentaje_pension or 0),
        }
        buckets = {}
        for name in ("escuelita", "pension"):
            pay = (totals[name] * percentages[name] / Decimal("100")).quantize(CENTS, ROUND_HALF_UP)
            buckets[name] = PayrollBucket(
                students=len(students[name]),
                subscriptions=counted[name],
                total=totals[name],
                percentage=percentages[name],
                pay=pay,
            )

        summary = PayrollSummary(
            teacher_id=teacher.id,
            teacher_name=teacher.display_name,
            month=month,
            year=year,
            escuelita=buckets["escuelita"],
            pension=buckets["pension"],
            total_pay=buckets["escuelita"].pay + buckets["pension"].pay,
        )
        self.log_operation(
            "calculate_teacher_payroll",
            teacher_id=teacher_id,
            month=month,
            year=year,
            total_pay=str(summary.total_pay),
        )
        return summary

    @BaseService.measure_operation("calculate_all_payroll")
    def calculate_all(self, month: int, year: int) -> PayrollRun:
        run = PayrollRun(month=month, year=year)
        for teacher in self.teacher_repository.get_active():
            try:
                run.summaries.append(self.calculate(teacher.id, month, year))
            except (NotFoundException, RepositoryException, ServiceException) as exc:
                self.logger.error(
                    f"Payroll for teacher {teacher.id} failed: {str(exc)}",
                    extra={"teacher_id": teacher.id, "month": month, "year": year},
                )
                run.failed_teacher_ids.append(teacher.id)
        return run
