"""
Teacher and horse availability lookups.

2024-03-12 is a Tuesday (weekday 1).
"""

from datetime import date, time

import pytest

from picadero.core.enums import HorseType, LessonStatus, RoleName
from picadero.core.exceptions import ValidationException
from picadero.services.availability_service import AvailabilityService

DAY = date(2024, 3, 12)
TUESDAY = 1


@pytest.fixture
def service(db, clock):
    return AvailabilityService(db, clock)


class TestTeachers:
    def test_every_active_teacher_without_working_hours(self, build, service):
        laura = build.teacher("Laura")
        martin = build.teacher("Martin")
        build.teacher("Retired", activo=False)

        available = service.available_teachers(DAY, time(10), time(11))

        assert {t.id for t in available} == {laura.id, martin.id}

    def test_working_hours_must_cover_the_interval(self, build, service):
        laura = build.teacher("Laura")
        martin = build.teacher("Martin")
        build.working_hours(laura, TUESDAY, time(8), time(12))
        build.working_hours(martin, TUESDAY, time(14), time(18))

        available = service.available_teachers(DAY, time(10), time(11))

        assert [t.id for t in available] == [laura.id]
        assert available[0].name == laura.display_name

    def test_busy_teachers_are_left_out(self, build, service):
        laura = build.teacher("Laura")
        martin = build.teacher("Martin")
        rider = build.user(RoleName.ESCUELITA)
        build.lesson(rider, laura, build.horse(), DAY, time(10, 30), time(11, 30))

        available = service.available_teachers(DAY, time(10), time(11))

        assert [t.id for t in available] == [martin.id]

    def test_bad_interval(self, service):
        with pytest.raises(ValidationException):
            service.available_teachers(DAY, time(11), time(10))


class TestHorses:
    def test_free_horses_under_their_cap(self, build, service):
        teacher = build.teacher()
        rider = build.user(RoleName.ESCUELITA)
        busy = build.horse("Busy")
        full = build.horse("Full", limite_clases_dia=1)
        free = build.horse("Free", tipo=HorseType.PRIVADO, dueno_id=build.user(RoleName.PENSION_COMPLETA).id)
        build.horse("Hurt", estado="lesionado")
        build.lesson(rider, teacher, busy, DAY, time(10), time(11))
        build.lesson(rider, build.teacher("Martin"), full, DAY, time(8), time(9))
        build.lesson(rider, teacher, free, DAY, time(8), time(9), estado=LessonStatus.CANCELADA)

        available = service.available_horses(DAY, time(10), time(11))

        assert [h.id for h in available] == [free.id]
        assert available[0].lessons_today == 0
        assert available[0].tipo == "privado"


class TestOccupancy:
    def test_horse_usage_against_the_daily_cap(self, db, build, service):
        teacher = build.teacher()
        rider = build.user(RoleName.ESCUELITA)
        busy = build.horse("Busy", limite_clases_dia=2)
        idle = build.horse("Idle")
        retired = build.horse("Retired")
        retired.activo = False
        db.commit()
        for day, estado in ((11, LessonStatus.PROGRAMADA), (12, LessonStatus.PROGRAMADA), (12, LessonStatus.CANCELADA)):
            build.lesson(rider, teacher, busy, date(2024, 3, day), time(9), time(10), estado=estado)
        build.lesson(rider, teacher, busy, date(2024, 4, 2), time(9), time(10))

        report = service.horse_occupancy(date(2024, 3, 11), date(2024, 3, 15))

        assert [row.nombre for row in report] == ["Busy", "Idle"]
        assert report[0].scheduled == 2
        assert report[0].capacity == 10
        assert report[0].usage_pct == 20.0
        assert report[1].scheduled == 0
        assert report[1].usage_pct == 0.0

    def test_open_range_uses_a_month_of_capacity(self, build, service):
        horse = build.horse("Tormenta", limite_clases_dia=3)
        build.lesson(build.user(), build.teacher(), horse, DAY, time(9), time(10))

        (row,) = service.horse_occupancy()

        assert row.capacity == 90
        assert row.scheduled == 1

    def test_teacher_counts(self, build, service):
        laura = build.teacher("Laura")
        martin = build.teacher("Martin")
        build.teacher("Retired", activo=False)
        rider = build.user(RoleName.ESCUELITA)
        build.lesson(rider, laura, build.horse("Luna"), DAY, time(9), time(10))
        build.lesson(rider, laura, build.horse("Sol"), DAY, time(11), time(12))

        report = {row.id: row for row in service.teacher_occupancy(start=DAY, end=DAY)}

        assert set(report) == {laura.id, martin.id}
        assert report[laura.id].scheduled == 2
        assert report[martin.id].scheduled == 0
        assert report[laura.id].name == laura.display_name

    def test_reversed_range(self, service):
        with pytest.raises(ValidationException):
            service.teacher_occupancy(date(2024, 3, 20), date(2024, 3, 1))
