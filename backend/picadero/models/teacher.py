# backend/picadero/models/teacher.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Teacher(Base):
    """
    Instructor profile linked to a ``profesor`` user.

    The two percentages are the teacher's share of the plan prices of riders
    they teach, per tier.
    """

    __tablename__ = "profesores"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, unique=True)
    especialidad = Column(String(100), nullable=True)
    porcentaje_escuelita = Column(Numeric(5, 2), nullable=False, default=0)
    porcentaje_pension = Column(Numeric(5, 2), nullable=False, default=0)
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint(
            "porcentaje_escuelita >= 0 AND porcentaje_escuelita <= 100",
            name="ck_profesores_pct_escuelita",
        ),
        CheckConstraint(
            "porcentaje_pension >= 0 AND porcentaje_pension <= 100",
            name="ck_profesores_pct_pension",
        ),
    )

    @property
    def display_name(self) -> str:
        return self.user.full_name if self.user else self.id

    def __repr__(self) -> str:
        return f"<Teacher {self.id} user={self.user_id}>"


class TeacherWorkingHours(Base):
    """Weekly window in which a teacher accepts lessons (dia_semana: 0=Monday)."""

    __tablename__ = "horarios_profesores"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    profesor_id = Column(String(26), ForeignKey("profesores.id"), nullable=False, index=True)
    dia_semana = Column(Integer, nullable=False)
    hora_inicio = Column(Time, nullable=False)
    hora_fin = Column(Time, nullable=False)
    activo = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("dia_semana >= 0 AND dia_semana <= 6", name="ck_horarios_prof_dia"),
        CheckConstraint("hora_fin > hora_inicio", name="ck_horarios_prof_range"),
    )
