# backend/picadero/models/lesson.py
"""
Lesson model.

A lesson is one rider, one teacher and one horse on a date and time
interval. Lessons are never deleted: cancellation and rescheduling only move
``estado`` away from ``programada``. A rescheduled lesson points at the
lesson it replaced through ``clase_original_id``.

Only ``programada`` lessons hold a slot. The partial unique indexes on
(teacher, date, start) and (horse, date, start) are the store-level backstop
for two bookings that pass validation concurrently.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import LessonStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

PROGRAMADA_ONLY = text("estado = 'programada'")


class Lesson(Base):
    __tablename__ = "clases"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    profesor_id = Column(String(26), ForeignKey("profesores.id"), nullable=False)
    caballo_id = Column(String(26), ForeignKey("caballos.id"), nullable=False)
    fecha = Column(Date, nullable=False)
    hora_inicio = Column(Time, nullable=False)
    hora_fin = Column(Time, nullable=False)
    estado = Column(String(20), nullable=False, default=LessonStatus.PROGRAMADA.value)
    es_extra = Column(Boolean, nullable=False, default=False)
    es_reagendada = Column(Boolean, nullable=False, default=False)
    clase_original_id = Column(String(26), ForeignKey("clases.id"), nullable=True)
    notas = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rider = relationship("User", foreign_keys=[user_id], viewonly=True)
    teacher = relationship("Teacher", foreign_keys=[profesor_id], viewonly=True)
    horse = relationship("Horse", foreign_keys=[caballo_id], viewonly=True)

    __table_args__ = (
        CheckConstraint("hora_fin > hora_inicio", name="ck_clases_time_order"),
        CheckConstraint(
            "estado IN ('programada', 'completada', 'cancelada', 'reagendada')",
            name="ck_clases_estado",
        ),
        Index(
            "uq_clases_profesor_slot",
            "profesor_id",
            "fecha",
            "hora_inicio",
            unique=True,
            postgresql_where=PROGRAMADA_ONLY,
            sqlite_where=PROGRAMADA_ONLY,
        ),
        Index(
            "uq_clases_caballo_slot",
            "caballo_id",
            "fecha",
            "hora_inicio",
            unique=True,
            postgresql_where=PROGRAMADA_ONLY,
            sqlite_where=PROGRAMADA_ONLY,
        ),
        Index("ix_clases_user_fecha", "user_id", "fecha"),
        Index("ix_clases_profesor_fecha", "profesor_id", "fecha"),
        Index("ix_clases_caballo_fecha", "caballo_id", "fecha"),
    )

    @property
    def is_active(self) -> bool:
        return self.estado == LessonStatus.PROGRAMADA.value

    def __repr__(self) -> str:
        return (
            f"<Lesson {self.id} user={self.user_id} {self.fecha} "
            f"{self.hora_inicio}-{self.hora_fin} {self.estado}>"
        )
