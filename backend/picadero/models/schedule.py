# backend/picadero/models/schedule.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Time
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class FixedScheduleSlot(Base):
    """
    A rider's recurring weekly commitment (weekday + time + teacher + horse).

    ``dia_semana`` follows ``date.weekday()``: 0 is Monday, 6 is Sunday.
    Slots are superseded by setting ``activo = False``, never deleted.
    """

    __tablename__ = "horarios_fijos"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    profesor_id = Column(String(26), ForeignKey("profesores.id"), nullable=False)
    caballo_id = Column(String(26), ForeignKey("caballos.id"), nullable=True)
    dia_semana = Column(Integer, nullable=False)
    hora_inicio = Column(Time, nullable=False)
    hora_fin = Column(Time, nullable=True)
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("dia_semana >= 0 AND dia_semana <= 6", name="ck_horarios_fijos_dia"),
    )

    def __repr__(self) -> str:
        return f"<FixedScheduleSlot {self.id} user={self.user_id} dia={self.dia_semana} {self.hora_inicio}>"
