# backend/picadero/models/subscription.py
"""
Subscription and monthly credit ledger models.

Escuelita subscriptions are bounded to one month and track usage in
``clases_usadas``. Pension subscriptions are open-ended (``fecha_fin`` NULL)
and track usage per calendar month in ``clases_mensuales``.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Subscription(Base):
    __tablename__ = "suscripciones"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    plan_id = Column(String(26), ForeignKey("planes.id"), nullable=False)
    fecha_inicio = Column(Date, nullable=False)
    fecha_fin = Column(Date, nullable=True)
    clases_incluidas = Column(Integer, nullable=False, default=0)
    clases_usadas = Column(Integer, nullable=False, default=0)
    activa = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    plan = relationship("Plan", lazy="joined")

    __table_args__ = (
        CheckConstraint("clases_usadas >= 0", name="ck_suscripciones_usadas_non_negative"),
    )

    @property
    def remaining(self) -> int:
        return (self.clases_incluidas or 0) - (self.clases_usadas or 0)

    def covers(self, day) -> bool:
        """True when ``day`` falls inside the subscription's validity window."""
        if self.fecha_inicio and day < self.fecha_inicio:
            return False
        return self.fecha_fin is None or day <= self.fecha_fin

    def __repr__(self) -> str:
        return f"<Subscription {self.id} user={self.user_id} plan={self.plan_id} activa={self.activa}>"


class MonthlyCreditRecord(Base):
    """Classes consumed by one pension subscription in one calendar month."""

    __tablename__ = "clases_mensuales"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    suscripcion_id = Column(String(26), ForeignKey("suscripciones.id"), nullable=False)
    mes = Column(Integer, nullable=False)
    anio = Column(Integer, nullable=False)
    clases_usadas = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("suscripcion_id", "mes", "anio", name="uq_clases_mensuales_periodo"),
        CheckConstraint("mes >= 1 AND mes <= 12", name="ck_clases_mensuales_mes"),
        CheckConstraint("clases_usadas >= 0", name="ck_clases_mensuales_usadas_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<MonthlyCreditRecord {self.suscripcion_id} {self.anio}-{self.mes:02d} "
            f"usadas={self.clases_usadas}>"
        )
