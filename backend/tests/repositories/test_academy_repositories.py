"""
Repository queries that the services rely on for correctness.
"""

from datetime import date, time

import pytest
from sqlalchemy.exc import IntegrityError

from picadero.core.enums import LessonStatus, RoleName
from picadero.core.exceptions import RepositoryException
from picadero.models import MonthlyCreditRecord, Subscription
from picadero.repositories.factory import RepositoryFactory

DAY = date(2024, 3, 12)


@pytest.fixture
def lessons(db):
    return RepositoryFactory.create_lesson_repository(db)


class TestLessonQueries:
    def test_touching_intervals_do_not_overlap(self, build, lessons):
        teacher = build.teacher()
        build.lesson(build.user(), teacher, build.horse(), DAY, time(10), time(11))

        assert lessons.get_teacher_conflicts(teacher.id, DAY, time(11), time(12)) == []
        assert lessons.get_teacher_conflicts(teacher.id, DAY, time(9), time(10)) == []
        assert len(lessons.get_teacher_conflicts(teacher.id, DAY, time(10, 59), time(12))) == 1

    def test_excluded_lesson_is_ignored(self, build, lessons):
        teacher = build.teacher()
        lesson = build.lesson(build.user(), teacher, build.horse(), DAY, time(10), time(11))

        assert lessons.get_teacher_conflicts(teacher.id, DAY, time(10), time(11), exclude_lesson_id=lesson.id) == []

    def test_horse_conflicts_can_ignore_a_rider(self, build, lessons):
        rider = build.user()
        horse = build.horse()
        build.lesson(rider, build.teacher(), horse, DAY, time(10), time(11))

        assert len(lessons.get_horse_conflicts(horse.id, DAY, time(10), time(11))) == 1
        assert lessons.get_horse_conflicts(horse.id, DAY, time(10), time(11), ignore_user_ids=[rider.id]) == []

    def test_day_counts_only_include_programada(self, build, lessons):
        horse = build.horse()
        teacher = build.teacher()
        build.lesson(build.user(), teacher, horse, DAY, time(8), time(9))
        build.lesson(build.user(), teacher, horse, DAY, time(9), time(10), estado=LessonStatus.CANCELADA)

        assert lessons.get_horse_day_counts(DAY) == {horse.id: 1}
        assert lessons.count_horse_lessons_on(horse.id, DAY) == 1

    def test_teacher_slot_is_unique_among_programada_lessons(self, build, lessons):
        teacher = build.teacher()
        first = build.user()
        build.lesson(first, teacher, build.horse("Luna"), DAY, time(10), time(11), estado=LessonStatus.CANCELADA)
        build.lesson(first, teacher, build.horse("Sol"), DAY, time(10), time(11))
        second = build.user()
        horse = build.horse("Tormenta")

        with pytest.raises(RepositoryException) as exc_info:
            lessons.create(
                user_id=second.id,
                profesor_id=teacher.id,
                caballo_id=horse.id,
                fecha=DAY,
                hora_inicio=time(10),
                hora_fin=time(11),
                estado=LessonStatus.PROGRAMADA.value,
            )

        assert isinstance(exc_info.value.__cause__, IntegrityError)
        assert "clases.profesor_id" in str(exc_info.value.__cause__.orig)


class TestCounters:
    def test_insert_ignoring_conflict_inserts_once(self, db, build):
        rider = build.user(RoleName.PENSION_COMPLETA)
        subscription = build.subscription(rider, build.plan(RoleName.PENSION_COMPLETA, precio="50000"), date(2024, 1, 1))
        repository = RepositoryFactory.create_monthly_credit_repository(db)
        row = {"suscripcion_id": subscription.id, "mes": 3, "anio": 2024, "clases_usadas": 0}

        assert repository.insert_ignoring_conflict(row, ("suscripcion_id", "mes", "anio")) is True
        assert repository.insert_ignoring_conflict(row, ("suscripcion_id", "mes", "anio")) is False
        assert db.query(MonthlyCreditRecord).filter_by(suscripcion_id=subscription.id).count() == 1

    def test_adjust_counter_respects_the_floor(self, db, build):
        rider = build.user()
        subscription = build.subscription(rider, build.plan(), clases_usadas=0)
        repository = RepositoryFactory.create_subscription_repository(db)

        assert repository.decrement_used(subscription.id) is False
        assert repository.increment_used(subscription.id) is True
        assert db.get(Subscription, subscription.id).clases_usadas == 1
        assert repository.decrement_used(subscription.id) is True
        assert db.get(Subscription, subscription.id).clases_usadas == 0
