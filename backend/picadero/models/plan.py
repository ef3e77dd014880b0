# backend/picadero/models/plan.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Plan(Base):
    """Membership plan: a tier, monthly class allotment and monthly price."""

    __tablename__ = "planes"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    nombre = Column(String(100), nullable=False)
    tipo = Column(String(30), nullable=False)
    clases_mes = Column(Integer, nullable=False)
    precio = Column(Numeric(12, 2), nullable=False)
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "tipo IN ('escuelita', 'pension_completa', 'media_pension')", name="ck_planes_tipo"
        ),
        CheckConstraint("clases_mes >= 0", name="ck_planes_clases_non_negative"),
        CheckConstraint("precio >= 0", name="ck_planes_precio_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Plan {self.id} {self.nombre} {self.tipo}>"
