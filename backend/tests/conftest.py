# backend/tests/conftest.py
"""
Pytest configuration for the Picadero backend.

Every test gets a fresh in-memory SQLite database built from the model
metadata, a session bound to it and a FixedClock pinned to a known
academy date. ``build`` creates rows directly, bypassing the services.
"""

from datetime import date, datetime, time
from decimal import Decimal
import os
import sys

# Set before any picadero import so the module-level engine never touches a real database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["CI"] = "true"

backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import picadero.models  # noqa: E402,F401
from picadero.core.clock import FixedClock  # noqa: E402
from picadero.core.enums import HorseType, LessonStatus, RoleName  # noqa: E402
from picadero.database import Base  # noqa: E402
from picadero.models import (  # noqa: E402
    FixedScheduleSlot,
    Horse,
    Invoice,
    Lesson,
    Plan,
    Subscription,
    Teacher,
    TeacherWorkingHours,
    User,
)

# Tuesday; the grace period (day 10) has not passed yet
DEFAULT_NOW = datetime(2024, 3, 5, 9, 0)


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(test_engine)
    yield test_engine
    Base.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(DEFAULT_NOW)


class AcademyBuilder:
    """Creates committed rows for test setup."""

    def __init__(self, db: Session):
        self.db = db
        self._seq = 0

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def user(self, rol: RoleName = RoleName.ESCUELITA, activo: bool = True, nombre: str = "Rider") -> User:
        n = self._next()
        return self._save(
            User(
                email=f"user{n}@picadero.test",
                nombre=nombre,
                apellido=f"Test{n}",
                rol=getattr(rol, "value", rol),
                activo=activo,
            )
        )

    def teacher(
        self,
        nombre: str = "Laura",
        porcentaje_escuelita: str = "0",
        porcentaje_pension: str = "0",
        activo: bool = True,
    ) -> Teacher:
        user = self.user(RoleName.PROFESOR, nombre=nombre)
        return self._save(
            Teacher(
                user_id=user.id,
                especialidad="salto",
                porcentaje_escuelita=Decimal(porcentaje_escuelita),
                porcentaje_pension=Decimal(porcentaje_pension),
                activo=activo,
            )
        )

    def working_hours(self, teacher: Teacher, weekday: int, start: time, end: time) -> TeacherWorkingHours:
        return self._save(
            TeacherWorkingHours(profesor_id=teacher.id, dia_semana=weekday, hora_inicio=start, hora_fin=end)
        )

    def horse(
        self,
        nombre: str = "Tormenta",
        tipo: HorseType = HorseType.ESCUELA,
        limite_clases_dia: int = 3,
        estado: str = "activo",
        dueno_id=None,
        dueno_id2=None,
    ) -> Horse:
        return self._save(
            Horse(
                nombre=nombre,
                tipo=getattr(tipo, "value", tipo),
                estado=estado,
                limite_clases_dia=limite_clases_dia,
                dueno_id=dueno_id,
                dueno_id2=dueno_id2,
            )
        )

    def plan(self, tipo: RoleName = RoleName.ESCUELITA, clases_mes: int = 8, precio: str = "20000", activo: bool = True) -> Plan:
        value = getattr(tipo, "value", tipo)
        return self._save(
            Plan(nombre=f"Plan {value}", tipo=value, clases_mes=clases_mes, precio=Decimal(precio), activo=activo)
        )

    def subscription(
        self,
        user: User,
        plan: Plan,
        fecha_inicio: date = date(2024, 3, 1),
        fecha_fin=None,
        clases_usadas: int = 0,
        activa: bool = True,
    ) -> Subscription:
        return self._save(
            Subscription(
                user_id=user.id,
                plan_id=plan.id,
                fecha_inicio=fecha_inicio,
                fecha_fin=fecha_fin,
                clases_incluidas=plan.clases_mes,
                clases_usadas=clases_usadas,
                activa=activa,
            )
        )

    def lesson(
        self,
        user: User,
        teacher: Teacher,
        horse: Horse,
        fecha: date,
        start: time,
        end: time,
        estado: LessonStatus = LessonStatus.PROGRAMADA,
        es_extra: bool = False,
    ) -> Lesson:
        return self._save(
            Lesson(
                user_id=user.id,
                profesor_id=teacher.id,
                caballo_id=horse.id,
                fecha=fecha,
                hora_inicio=start,
                hora_fin=end,
                estado=getattr(estado, "value", estado),
                es_extra=es_extra,
            )
        )

    def invoice(
        self,
        subscription: Subscription,
        mes: int,
        anio: int,
        monto: str = "50000",
        pagada: bool = False,
        estado: str = "pendiente",
        fecha_vencimiento: date = None,
    ) -> Invoice:
        return self._save(
            Invoice(
                user_id=subscription.user_id,
                suscripcion_id=subscription.id,
                mes=mes,
                anio=anio,
                monto=Decimal(monto),
                estado=estado,
                pagada=pagada,
                fecha_vencimiento=fecha_vencimiento or date(anio, mes, 10),
            )
        )

    def fixed_slot(self, user: User, teacher: Teacher, weekday: int, start: time, end=None, horse=None) -> FixedScheduleSlot:
        return self._save(
            FixedScheduleSlot(
                user_id=user.id,
                profesor_id=teacher.id,
                caballo_id=horse.id if horse is not None else None,
                dia_semana=weekday,
                hora_inicio=start,
                hora_fin=end,
                activo=True,
            )
        )


@pytest.fixture
def build(db) -> AcademyBuilder:
    return AcademyBuilder(db)
