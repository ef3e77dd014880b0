"""
Monthly lesson generation from fixed weekly slots.

February 2024 has four Fridays: the 2nd, 9th, 16th and 23rd.
"""

from datetime import date, datetime, time
from types import SimpleNamespace

import pytest

from picadero.core.clock import FixedClock
from picadero.core.enums import HorseType, RoleName
from picadero.models import Lesson, Subscription
from picadero.repositories.factory import RepositoryFactory
from picadero.services.schedule_generator_service import ScheduleGeneratorService, SlotInput

FRIDAY = 4


@pytest.fixture
def service(db):
    return ScheduleGeneratorService(db, FixedClock(datetime(2024, 1, 20, 9, 0)))


@pytest.fixture
def rider(build):
    user = build.user(RoleName.ESCUELITA)
    plan = build.plan(RoleName.ESCUELITA, clases_mes=4)
    subscription = build.subscription(user, plan, date(2024, 2, 1), date(2024, 2, 29))
    teacher = build.teacher("Laura")
    school_horse = build.horse("Pampa")
    return SimpleNamespace(user=user, subscription=subscription, teacher=teacher, horse=school_horse)


class TestGenerateMonth:
    def test_one_lesson_per_matching_weekday(self, db, build, service, rider):
        build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(10))

        result = service.generate_month(rider.user.id, "2024-02")

        assert result.success is True
        report = result.data
        assert report.classes_created == 4
        assert [lesson.fecha for lesson in report.lessons] == [
            date(2024, 2, 2),
            date(2024, 2, 9),
            date(2024, 2, 16),
            date(2024, 2, 23),
        ]
        assert all(lesson.hora_fin == time(11) for lesson in report.lessons)
        assert all(lesson.caballo_id == rider.horse.id for lesson in report.lessons)
        assert db.get(Subscription, rider.subscription.id).clases_usadas == 0

    def test_rerun_creates_nothing_and_still_succeeds(self, db, build, service, rider):
        build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(10))
        service.generate_month(rider.user.id, "2024-02")

        result = service.generate_month(rider.user.id, "2024-02")

        assert result.success is True
        assert result.data.classes_created == 0
        assert len(result.data.skipped) == 4
        assert result.data.skipped[0] == "2024-02-02: already scheduled"
        assert db.query(Lesson).count() == 4

    def test_slot_horse_and_end_time_are_used(self, build, service, rider):
        private = build.horse("Brisa", tipo=HorseType.PRIVADO, dueno_id=build.user(RoleName.PENSION_COMPLETA).id)
        build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(17), end=time(17, 45), horse=private)

        result = service.generate_month(rider.user.id, "2024-02")

        assert {lesson.caballo_id for lesson in result.data.lessons} == {private.id}
        assert {lesson.hora_fin for lesson in result.data.lessons} == {time(17, 45)}

    def test_conflicting_date_is_skipped(self, build, service, rider):
        build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(10))
        other = build.user(RoleName.ESCUELITA)
        build.lesson(other, rider.teacher, build.horse("Luna"), date(2024, 2, 9), time(10), time(11))

        result = service.generate_month(rider.user.id, "2024-02")

        assert result.success is True
        assert result.data.classes_created == 3
        assert result.data.skipped == ["2024-02-09: teacher unavailable"]

    def test_fails_when_every_date_conflicts(self, build, service, rider):
        build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(10))
        other = build.user(RoleName.ESCUELITA)
        for day in (2, 9, 16, 23):
            build.lesson(other, build.teacher("Martin"), rider.horse, date(2024, 2, day), time(10), time(11))

        result = service.generate_month(rider.user.id, "2024-02")

        assert result.success is False
        assert result.reason == "NO_LESSONS_CREATED"
        assert result.data.skipped[0] == "2024-02-02: horse unavailable"

    def test_slot_count_must_match_the_plan(self, build, service):
        user = build.user(RoleName.ESCUELITA)
        build.subscription(user, build.plan(RoleName.ESCUELITA, clases_mes=8), date(2024, 2, 1), date(2024, 2, 29))
        build.horse("Pampa")
        build.fixed_slot(user, build.teacher(), FRIDAY, time(10))

        result = service.generate_month(user.id, "2024-02")

        assert result.reason == "SLOT_COUNT_MISMATCH"
        assert result.details["active_slots"] == 1

    def test_only_escuelita_riders(self, build, service):
        user = build.user(RoleName.PENSION_COMPLETA)
        result = service.generate_month(user.id, "2024-02")
        assert result.reason == "ROLE_NOT_ALLOWED"

    def test_requires_fixed_slots(self, service, rider):
        result = service.generate_month(rider.user.id, "2024-02")
        assert result.reason == "NO_FIXED_SCHEDULE"

    def test_rejects_malformed_month(self, service, rider):
        result = service.generate_month(rider.user.id, "2024-13")
        assert result.reason == "INVALID_MONTH"

    def test_needs_a_school_horse_for_slots_without_one(self, db, build, service):
        user = build.user(RoleName.ESCUELITA)
        build.subscription(user, build.plan(RoleName.ESCUELITA, clases_mes=4), date(2024, 2, 1), date(2024, 2, 29))
        build.horse("Brisa", tipo=HorseType.PRIVADO, dueno_id=build.user(RoleName.PENSION_COMPLETA).id)
        build.fixed_slot(user, build.teacher(), FRIDAY, time(10))

        result = service.generate_month(user.id, "2024-02")

        assert result.reason == "NO_SCHOOL_HORSE"
        assert db.query(Lesson).count() == 0


class TestReplaceFixedSlots:
    def test_new_slots_supersede_the_old_ones(self, db, build, service, rider):
        old = build.fixed_slot(rider.user, rider.teacher, FRIDAY, time(10))

        result = service.replace_fixed_slots(
            rider.user.id,
            [SlotInput(rider.teacher.id, 1, time(9)), SlotInput(rider.teacher.id, 3, time(9))],
        )

        assert result.success is True
        active = RepositoryFactory.create_schedule_repository(db).get_active_for_user(rider.user.id)
        assert sorted(slot.dia_semana for slot in active) == [1, 3]
        assert old.id not in result.data["slot_ids"]

    def test_pension_riders_have_no_fixed_slots(self, build, service):
        user = build.user(RoleName.MEDIA_PENSION)
        result = service.replace_fixed_slots(user.id, [])
        assert result.reason == "ROLE_NOT_ALLOWED"
