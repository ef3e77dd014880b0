# backend/picadero/services/billing_service.py
"""
Monthly billing for pension riders.

The batch run bills every active pension_completa / media_pension rider's
open-ended subscription for the current month. It is safe to re-run: an
existing invoice for the period is skipped, and the unique key on
(subscription, month, year) stops a concurrent run from inserting twice.

Invoices fall due on the configured business day (Monday to Friday,
holidays ignored) of their month, both in the batch and at sign-up.
"""

from datetime import date, datetime
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import InvoiceStatus, PENSION_ROLES, RejectionReason
from ..core.exceptions import RepositoryException, ServiceException
from ..models.invoice import Invoice
from ..models.subscription import Subscription
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.billing import BillingRunReport, InvoiceHistoryItem, InvoiceRead
from ..schemas.results import OperationResult
from ..utils.dates import nth_business_day, previous_month
from .base import BaseService
from .credit_ledger_service import CreditLedgerService

logger = logging.getLogger(__name__)


def invoice_due_date(year: int, month: int) -> date:
    return nth_business_day(year, month, settings.invoice_due_business_day)


class BillingService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        ledger: Optional[CreditLedgerService] = None,
    ):
        super().__init__(db, clock)
        self.ledger = ledger or CreditLedgerService(db, self.clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)
        self.invoice_repository = RepositoryFactory.create_invoice_repository(db)
        self.proof_repository = RepositoryFactory.create_payment_proof_repository(db)

    @BaseService.measure_operation("generate_monthly_invoices")
    def generate_monthly_invoices(self) -> BillingRunReport:
        """Bill every eligible open-ended pension subscription for the current month."""
        today = self.clock.today()
        month, year = today.month, today.year
        report = BillingRunReport(success=False, month=month, year=year)

        riders = self.user_repository.get_active_by_roles(PENSION_ROLES)
        subscriptions = self.subscription_repository.get_open_ended_active([u.id for u in riders])
        report.eligible = len(subscriptions)

        for subscription in subscriptions:
            try:
                existing = self.invoice_repository.get_for_period(
                    subscription.user_id, subscription.id, month, year
                )
                if existing is not None:
                    report.skipped_existing += 1
                    continue
                with self.transaction():
                    _, created = self._issue(subscription, month, year)
                if created:
                    report.created += 1
                else:
                    report.skipped_existing += 1
            except (RepositoryException, ServiceException) as exc:
                self.logger.error(
                    f"Invoice for subscription {subscription.id} failed: {str(exc)}",
                    extra={"subscription_id": subscription.id, "month": month, "year": year},
                )
                prometheus_metrics.inc_batch_failure("monthly_invoices")
                report.errors.append({"subscription_id": subscription.id, "error": str(exc)})

        attempted = report.eligible - report.skipped_existing
        report.success = report.created > 0 or attempted == 0
        prometheus_metrics.inc_invoices_issued("monthly_batch", report.created)
        self.log_operation(
            "generate_monthly_invoices",
            month=month,
            year=year,
            eligible=report.eligible,
            invoices_created=report.created,
            failed=len(report.errors),
        )
        return report

    def issue_invoice(self, subscription: Subscription, month: int, year: int) -> Invoice:
        """
        Issue the invoice for one subscription and period inside the caller's transaction.

        Used at sign-up; returns the existing invoice when one was already issued.
        """
        invoice, created = self._issue(subscription, month, year)
        if created:
            prometheus_metrics.inc_invoices_issued("signup")
        return invoice

    def _issue(self, subscription: Subscription, month: int, year: int) -> tuple[Invoice, bool]:
        if subscription.plan is None:
            raise ServiceException(
                f"Subscription {subscription.id} has no plan", code="PLAN_NOT_FOUND"
            )
        self.ledger.initialize_month(subscription.id, month, year)
        return self.invoice_repository.issue(
            user_id=subscription.user_id,
            subscription_id=subscription.id,
            month=month,
            year=year,
            amount=Decimal(subscription.plan.precio),
            due_date=invoice_due_date(year, month),
        )

    def pending_invoices(self, user_id: str) -> List[InvoiceRead]:
        return [InvoiceRead.model_validate(inv) for inv in self.invoice_repository.get_pending_for_user(user_id)]

    def invoice_history(self, user_id: str, months: int = 3) -> List[InvoiceHistoryItem]:
        """
        The rider's invoices for the last ``months`` months (current included), newest first.

        ``computed_status`` is ``pagada`` when paid, ``vencida`` once the due
        date has passed, and ``pendiente`` otherwise.
        """
        today = self.clock.today()
        since_year, since_month = today.year, today.month
        for _ in range(max(months, 1) - 1):
            since_year, since_month = previous_month(since_year, since_month)

        invoices = self.invoice_repository.get_history_for_user(user_id, since_year, since_month)
        with_pending = self.proof_repository.get_invoice_ids_with_pending([inv.id for inv in invoices])

        history = []
        for invoice in invoices:
            base = InvoiceRead.model_validate(invoice).model_dump()
            history.append(
                InvoiceHistoryItem(
                    **base,
                    computed_status=self._computed_status(invoice, today),
                    has_pending_proof=invoice.id in with_pending,
                )
            )
        return history

    def _computed_status(self, invoice: Invoice, today: date) -> str:
        if invoice.pagada or invoice.estado in settings.paid_invoice_statuses:
            return InvoiceStatus.PAGADA.value
        if invoice.fecha_vencimiento < today:
            return InvoiceStatus.VENCIDA.value
        return InvoiceStatus.PENDIENTE.value

    @BaseService.measure_operation("mark_invoice_paid")
    def mark_paid(self, invoice_id: str, paid_at: Optional[datetime] = None) -> OperationResult:
        invoice = self.invoice_repository.get_by_id(invoice_id)
        if invoice is None:
            return OperationResult.fail(RejectionReason.INVOICE_NOT_FOUND, "Invoice not found")
        if invoice.pagada:
            return OperationResult.fail(
                RejectionReason.INVOICE_ALREADY_PAID, "Invoice is already paid"
            )
        try:
            with self.transaction():
                self.set_paid(invoice, paid_at)
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Marking invoice {invoice_id} paid failed: {str(exc)}")
            return OperationResult.fail(RejectionReason.STORE_ERROR, "Invoice could not be updated")

        self.log_operation("mark_invoice_paid", invoice_id=invoice_id, user_id=invoice.user_id)
        return OperationResult.ok(InvoiceRead.model_validate(invoice))

    def set_paid(self, invoice: Invoice, paid_at: Optional[datetime] = None) -> None:
        """Settle ``invoice`` inside the caller's open transaction."""
        self.invoice_repository.update(
            invoice.id,
            estado=InvoiceStatus.PAGADA.value,
            pagada=True,
            fecha_pago=paid_at or self.clock.now(),
        )
