# backend/picadero/services/payment_proof_service.py
"""
Payment proofs.

Riders upload a proof of payment for one of their invoices; an administrator
approves it, which settles the invoice, or rejects it with a note. File
storage is handled by the caller; only the resulting URL is recorded here.
"""

from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import ProofStatus, RejectionReason
from ..core.exceptions import RepositoryException, ServiceException
from ..repositories.factory import RepositoryFactory
from ..schemas.billing import PaymentProofRead, UserPaymentProof
from ..schemas.results import OperationResult
from .base import BaseService
from .billing_service import BillingService

logger = logging.getLogger(__name__)


class PaymentProofService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        billing: Optional[BillingService] = None,
    ):
        super().__init__(db, clock)
        self.billing = billing or BillingService(db, self.clock)
        self.invoice_repository = RepositoryFactory.create_invoice_repository(db)
        self.proof_repository = RepositoryFactory.create_payment_proof_repository(db)

    @BaseService.measure_operation("submit_payment_proof")
    def submit(
        self,
        user_id: str,
        invoice_id: str,
        amount: Decimal,
        file_url: str,
        file_name: Optional[str] = None,
        file_type: Optional[str] = None,
    ) -> OperationResult:
        invoice = self.invoice_repository.get_by_id(invoice_id)
        if invoice is None or invoice.user_id != user_id:
            return OperationResult.fail(RejectionReason.INVOICE_NOT_FOUND, "Invoice not found")
        if invoice.pagada:
            return OperationResult.fail(
                RejectionReason.INVOICE_ALREADY_PAID, "Invoice is already paid"
            )
        if Decimal(str(amount)) != Decimal(invoice.monto):
            return OperationResult.fail(
                RejectionReason.AMOUNT_MISMATCH,
                "The amount does not match the invoice",
                details={"expected": str(invoice.monto), "received": str(amount)},
            )

        try:
            with self.transaction():
                proof = self.proof_repository.create(
                    factura_id=invoice.id,
                    user_id=user_id,
                    archivo_url=file_url,
                    nombre_archivo=file_name,
                    tipo_archivo=file_type,
                    monto=Decimal(str(amount)),
                    estado=ProofStatus.PENDIENTE.value,
                    fecha_subida=self.clock.now(),
                )
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Saving payment proof for {invoice_id} failed: {str(exc)}")
            return OperationResult.fail(RejectionReason.STORE_ERROR, "Proof could not be saved")

        self.log_operation("submit_payment_proof", proof_id=proof.id, invoice_id=invoice.id)
        return OperationResult.ok(PaymentProofRead.model_validate(proof))

    @BaseService.measure_operation("approve_payment_proof")
    def approve(self, proof_id: str, reviewer_id: str) -> OperationResult:
        proof, failure = self._load_pending(proof_id)
        if failure is not None:
            return failure
        invoice = self.invoice_repository.get_by_id(proof.factura_id)
        if invoice is None:
            return OperationResult.fail(RejectionReason.INVOICE_NOT_FOUND, "Invoice not found")

        try:
            with self.transaction():
                self._review(proof.id, ProofStatus.APROBADO, reviewer_id)
                if not invoice.pagada:
                    self.billing.set_paid(invoice, self.clock.now())
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Approving proof {proof_id} failed: {str(exc)}")
            return OperationResult.fail(RejectionReason.STORE_ERROR, "Proof could not be updated")

        self.log_operation("approve_payment_proof", proof_id=proof_id, invoice_id=invoice.id)
        return OperationResult.ok(PaymentProofRead.model_validate(proof))

    @BaseService.measure_operation("reject_payment_proof")
    def reject(self, proof_id: str, reviewer_id: str, notes: Optional[str] = None) -> OperationResult:
        proof, failure = self._load_pending(proof_id)
        if failure is not None:
            return failure
        try:
            with self.transaction():
                self._review(proof.id, ProofStatus.RECHAZADO, reviewer_id, notes)
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Rejecting proof {proof_id} failed: {str(exc)}")
            return OperationResult.fail(RejectionReason.STORE_ERROR, "Proof could not be updated")

        self.log_operation("reject_payment_proof", proof_id=proof_id)
        return OperationResult.ok(PaymentProofRead.model_validate(proof))

    def pending(self) -> List[PaymentProofRead]:
        return [PaymentProofRead.model_validate(p) for p in self.proof_repository.get_pending()]

    def for_user(self, user_id: str) -> List[UserPaymentProof]:
        """The rider's proofs, newest first, with the invoice period each one pays."""
        return [
            UserPaymentProof(
                **PaymentProofRead.model_validate(proof).model_dump(),
                invoice_month=invoice.mes,
                invoice_year=invoice.anio,
                invoice_amount=invoice.monto,
                fecha_vencimiento=invoice.fecha_vencimiento,
            )
            for proof, invoice in self.proof_repository.get_for_user(user_id)
        ]

    def _load_pending(self, proof_id: str):
        proof = self.proof_repository.get_by_id(proof_id)
        if proof is None:
            return None, OperationResult.fail(RejectionReason.PROOF_NOT_FOUND, "Proof not found")
        if proof.estado != ProofStatus.PENDIENTE.value:
            return None, OperationResult.fail(
                RejectionReason.PROOF_ALREADY_REVIEWED,
                f"Proof was already {proof.estado}",
                details={"estado": proof.estado},
            )
        return proof, None

    def _review(
        self, proof_id: str, status: ProofStatus, reviewer_id: str, notes: Optional[str] = None
    ) -> None:
        self.proof_repository.update(
            proof_id,
            estado=status.value,
            revisado_por=reviewer_id,
            fecha_revision=self.clock.now(),
            observaciones=notes,
        )
