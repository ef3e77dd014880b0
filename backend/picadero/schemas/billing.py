from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import ConfigDict

from .base import Money, StandardizedModel


class InvoiceRead(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    suscripcion_id: str
    mes: int
    anio: int
    monto: Money
    estado: str
    fecha_vencimiento: date
    pagada: bool
    fecha_pago: Optional[datetime] = None


class InvoiceHistoryItem(InvoiceRead):
    computed_status: str
    has_pending_proof: bool = False


class PaymentProofRead(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    factura_id: str
    user_id: str
    archivo_url: str
    nombre_archivo: Optional[str] = None
    monto: Money
    estado: str
    observaciones: Optional[str] = None
    fecha_subida: Optional[datetime] = None


class UserPaymentProof(PaymentProofRead):
    """A proof with the period and amount of the invoice it pays."""

    invoice_month: int
    invoice_year: int
    invoice_amount: Money
    fecha_vencimiento: date


class BillingRunReport(StandardizedModel):
    success: bool
    month: int
    year: int
    eligible: int = 0
    created: int = 0
    skipped_existing: int = 0
    errors: List[Dict[str, str]] = []


class ReconciliationReport(StandardizedModel):
    success: bool
    checked: int = 0
    updated: int = 0
    details: List[Dict[str, object]] = []
    errors: List[Dict[str, str]] = []
