# backend/picadero/repositories/invoice_repository.py
"""
Invoice and payment proof repositories.

Invoices are unique per (subscription, month, year); ``issue`` relies on
insert-or-ignore so the monthly batch and sign-up billing never create
duplicates even when they race.
"""

from datetime import date
from decimal import Decimal
import logging
from typing import Collection, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.enums import InvoiceStatus, ProofStatus
from ..core.exceptions import RepositoryException
from ..models.invoice import Invoice, PaymentProof
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class InvoiceRepository(BaseRepository[Invoice]):
    def __init__(self, db: Session):
        super().__init__(db, Invoice)

    def get_for_period(
        self, user_id: str, subscription_id: str, month: int, year: int
    ) -> Optional[Invoice]:
        return self.find_one_by(user_id=user_id, suscripcion_id=subscription_id, mes=month, anio=year)

    def issue(
        self,
        user_id: str,
        subscription_id: str,
        month: int,
        year: int,
        amount: Decimal,
        due_date: date,
    ) -> tuple[Invoice, bool]:
        """
        Insert a pending invoice for the period unless one exists.

        Returns:
            (invoice, created) where ``created`` is False for an existing row
        """
        created = self.insert_ignoring_conflict(
            {
                "user_id": user_id,
                "suscripcion_id": subscription_id,
                "mes": month,
                "anio": year,
                "monto": amount,
                "estado": InvoiceStatus.PENDIENTE.value,
                "fecha_vencimiento": due_date,
                "pagada": False,
            },
            ("suscripcion_id", "mes", "anio"),
        )
        invoice = self.find_one_by(suscripcion_id=subscription_id, mes=month, anio=year)
        if invoice is None:
            raise RepositoryException("Invoice not found after insert")
        return invoice, created

    def has_paid_for_month(
        self, user_id: str, month: int, year: int, paid_statuses: Collection[str]
    ) -> bool:
        query = self.db.query(Invoice.id).filter(
            Invoice.user_id == user_id,
            Invoice.mes == month,
            Invoice.anio == year,
            or_(Invoice.estado.in_(list(paid_statuses)), Invoice.pagada.is_(True)),
        )
        return self._execute_scalar(query.limit(1)) is not None

    def get_pending_for_user(self, user_id: str) -> List[Invoice]:
        query = (
            self.db.query(Invoice)
            .filter(Invoice.user_id == user_id, Invoice.pagada.is_(False))
            .order_by(Invoice.anio, Invoice.mes)
        )
        return self._execute_query(query)

    def get_history_for_user(self, user_id: str, since_year: int, since_month: int) -> List[Invoice]:
        """Invoices of the rider from (since_year, since_month) onward, newest first."""
        query = (
            self.db.query(Invoice)
            .filter(
                Invoice.user_id == user_id,
                (Invoice.anio * 100 + Invoice.mes) >= since_year * 100 + since_month,
            )
            .order_by(Invoice.anio.desc(), Invoice.mes.desc())
        )
        return self._execute_query(query)


class PaymentProofRepository(BaseRepository[PaymentProof]):
    def __init__(self, db: Session):
        super().__init__(db, PaymentProof)

    def get_pending(self) -> List[PaymentProof]:
        query = (
            self.db.query(PaymentProof)
            .filter(PaymentProof.estado == ProofStatus.PENDIENTE.value)
            .order_by(PaymentProof.fecha_subida, PaymentProof.id)
        )
        return self._execute_query(query)

    def get_for_user(self, user_id: str) -> List[Tuple[PaymentProof, Invoice]]:
        """A rider's proofs with the invoice each one pays, newest first."""
        query = (
            self.db.query(PaymentProof, Invoice)
            .join(Invoice, Invoice.id == PaymentProof.factura_id)
            .filter(PaymentProof.user_id == user_id)
            .order_by(PaymentProof.fecha_subida.desc(), PaymentProof.id.desc())
        )
        return [(proof, invoice) for proof, invoice in self._execute_query(query)]

    def get_invoice_ids_with_pending(self, invoice_ids: List[str]) -> set:
        if not invoice_ids:
            return set()
        query = self.db.query(PaymentProof.factura_id).filter(
            PaymentProof.factura_id.in_(invoice_ids),
            PaymentProof.estado == ProofStatus.PENDIENTE.value,
        )
        return {row[0] for row in self._execute_query(query)}
