"""
Teacher payroll for a month.
"""

from datetime import date, time
from decimal import Decimal

import pytest

from picadero.core.enums import LessonStatus, PlanType, RoleName
from picadero.core.exceptions import NotFoundException
from picadero.services.payroll_service import PayrollService, bucket_for


@pytest.fixture
def academy(build):
    teacher = build.teacher("Laura", porcentaje_escuelita="30", porcentaje_pension="40")
    other_teacher = build.teacher("Martin", porcentaje_escuelita="50", porcentaje_pension="50")
    horse = build.horse()

    kid = build.user(RoleName.ESCUELITA)
    build.subscription(
        kid, build.plan(RoleName.ESCUELITA, precio="20000"), date(2024, 3, 1), date(2024, 3, 31)
    )
    owner = build.user(RoleName.PENSION_COMPLETA)
    build.subscription(owner, build.plan(RoleName.PENSION_COMPLETA, precio="50000"), date(2024, 1, 1))

    # Several lessons still count the subscription once
    build.lesson(kid, teacher, horse, date(2024, 3, 4), time(10), time(11))
    build.lesson(kid, teacher, horse, date(2024, 3, 11), time(10), time(11))
    build.lesson(owner, teacher, horse, date(2024, 3, 6), time(10), time(11))
    return teacher, other_teacher, horse


class TestCalculate:
    def test_percentages_per_bucket(self, db, clock, academy):
        teacher, _, _ = academy

        summary = PayrollService(db, clock).calculate(teacher.id, 3, 2024)

        assert summary.teacher_name == "Laura Test1"
        assert summary.escuelita.students == 1
        assert summary.escuelita.subscriptions == 1
        assert summary.escuelita.total == Decimal("20000")
        assert summary.escuelita.pay == Decimal("6000.00")
        assert summary.pension.total == Decimal("50000")
        assert summary.pension.pay == Decimal("20000.00")
        assert summary.total_pay == Decimal("26000.00")

    def test_only_the_teachers_own_riders_count(self, db, build, clock, academy):
        teacher, other_teacher, horse = academy
        stranger = build.user(RoleName.MEDIA_PENSION)
        build.subscription(stranger, build.plan(RoleName.MEDIA_PENSION, precio="40000"), date(2024, 1, 1))
        build.lesson(stranger, other_teacher, horse, date(2024, 3, 7), time(10), time(11))
        dropout = build.user(RoleName.ESCUELITA)
        build.subscription(
            dropout, build.plan(RoleName.ESCUELITA, precio="20000"), date(2024, 3, 1), date(2024, 3, 31)
        )
        build.lesson(dropout, teacher, horse, date(2024, 3, 8), time(10), time(11), estado=LessonStatus.CANCELADA)

        summary = PayrollService(db, clock).calculate(teacher.id, 3, 2024)

        assert summary.escuelita.students == 1
        assert summary.pension.students == 1
        assert summary.total_pay == Decimal("26000.00")

    def test_month_without_lessons_pays_nothing(self, db, clock, academy):
        teacher, _, _ = academy

        summary = PayrollService(db, clock).calculate(teacher.id, 5, 2024)

        assert summary.total_pay == Decimal("0")

    def test_unknown_teacher(self, db, clock):
        with pytest.raises(NotFoundException):
            PayrollService(db, clock).calculate("01HZZZZZZZZZZZZZZZZZZZZZZZ", 3, 2024)


class TestCalculateAll:
    def test_one_summary_per_active_teacher(self, db, build, clock, academy):
        build.teacher("Retired", activo=False)

        run = PayrollService(db, clock).calculate_all(3, 2024)

        assert len(run.summaries) == 2
        assert run.failed_teacher_ids == []


def test_plan_types_map_to_buckets():
    assert bucket_for(PlanType.ESCUELITA.value) == "escuelita"
    assert bucket_for(PlanType.PENSION_COMPLETA.value) == "pension"
    assert bucket_for(PlanType.MEDIA_PENSION.value) == "pension"
