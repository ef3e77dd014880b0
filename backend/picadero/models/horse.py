# backend/picadero/models/horse.py
"""
Horse model.

School horses (``escuela``) have no owner. Private horses (``privado``) have
one owner, and a second owner when the horse is shared under media pension.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from ..core.enums import HorseStatus, HorseType
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Horse(Base):
    __tablename__ = "caballos"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    nombre = Column(String(100), nullable=False)
    tipo = Column(String(20), nullable=False, default=HorseType.ESCUELA.value)
    estado = Column(String(20), nullable=False, default=HorseStatus.ACTIVO.value)
    limite_clases_dia = Column(Integer, nullable=False, default=3)
    activo = Column(Boolean, nullable=False, default=True)

    dueno_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    dueno_id2 = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("tipo IN ('escuela', 'privado')", name="ck_caballos_tipo"),
        CheckConstraint(
            "estado IN ('activo', 'descanso', 'lesionado')", name="ck_caballos_estado"
        ),
        CheckConstraint(
            "(tipo = 'privado' AND dueno_id IS NOT NULL) "
            "OR (tipo = 'escuela' AND dueno_id IS NULL AND dueno_id2 IS NULL)",
            name="ck_caballos_owner_matches_tipo",
        ),
        CheckConstraint("limite_clases_dia > 0", name="ck_caballos_limite_positive"),
    )

    def co_owner_of(self, user_id: str):
        """Return the other owner of a shared private horse, or None."""
        if self.tipo != HorseType.PRIVADO.value:
            return None
        if user_id == self.dueno_id:
            return self.dueno_id2
        if user_id == self.dueno_id2:
            return self.dueno_id
        return None

    def __repr__(self) -> str:
        return f"<Horse {self.id} {self.nombre} {self.tipo}/{self.estado}>"
