# backend/picadero/models/invoice.py
"""
Invoice and payment proof models.

One invoice per (subscription, month, year); the unique constraint keeps the
monthly batch and sign-up billing from double-issuing. Riders settle invoices
by uploading a payment proof that an administrator reviews.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from ..core.enums import InvoiceStatus, ProofStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base


class Invoice(Base):
    __tablename__ = "facturas"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    suscripcion_id = Column(String(26), ForeignKey("suscripciones.id"), nullable=False)
    mes = Column(Integer, nullable=False)
    anio = Column(Integer, nullable=False)
    monto = Column(Numeric(12, 2), nullable=False)
    estado = Column(String(20), nullable=False, default=InvoiceStatus.PENDIENTE.value)
    fecha_vencimiento = Column(Date, nullable=False)
    pagada = Column(Boolean, nullable=False, default=False)
    fecha_pago = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("suscripcion_id", "mes", "anio", name="uq_facturas_periodo"),
        CheckConstraint("mes >= 1 AND mes <= 12", name="ck_facturas_mes"),
        CheckConstraint("monto >= 0", name="ck_facturas_monto_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.id} user={self.user_id} {self.anio}-{self.mes:02d} {self.estado}>"


class PaymentProof(Base):
    __tablename__ = "comprobantes"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    factura_id = Column(String(26), ForeignKey("facturas.id"), nullable=False, index=True)
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    archivo_url = Column(String(500), nullable=False)
    nombre_archivo = Column(String(255), nullable=True)
    tipo_archivo = Column(String(100), nullable=True)
    monto = Column(Numeric(12, 2), nullable=False)
    estado = Column(String(20), nullable=False, default=ProofStatus.PENDIENTE.value)
    fecha_subida = Column(DateTime(timezone=True), server_default=func.now())
    fecha_revision = Column(DateTime(timezone=True), nullable=True)
    revisado_por = Column(String(26), ForeignKey("users.id"), nullable=True)
    observaciones = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "estado IN ('pendiente', 'aprobado', 'rechazado')", name="ck_comprobantes_estado"
        ),
    )

    def __repr__(self) -> str:
        return f"<PaymentProof {self.id} factura={self.factura_id} {self.estado}>"
