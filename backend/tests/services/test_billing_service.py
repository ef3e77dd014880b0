"""
Monthly invoicing, invoice history and manual payment.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from picadero.core.clock import FixedClock
from picadero.core.enums import RoleName
from picadero.models import Invoice
from picadero.models.subscription import MonthlyCreditRecord
from picadero.services.billing_service import BillingService, invoice_due_date
from picadero.services.payment_proof_service import PaymentProofService


@pytest.fixture
def first_of_month():
    return FixedClock(datetime(2024, 3, 1, 0, 5))


@pytest.fixture
def pension_rider(build):
    rider = build.user(RoleName.PENSION_COMPLETA)
    plan = build.plan(RoleName.PENSION_COMPLETA, clases_mes=8, precio="50000")
    return rider, build.subscription(rider, plan, date(2024, 1, 1))


class TestMonthlyRun:
    def test_bills_open_ended_pension_subscriptions(self, db, first_of_month, pension_rider):
        rider, subscription = pension_rider

        report = BillingService(db, first_of_month).generate_monthly_invoices()

        assert report.success is True
        assert (report.month, report.year) == (3, 2024)
        assert report.eligible == 1
        assert report.created == 1
        invoice = db.query(Invoice).filter_by(suscripcion_id=subscription.id).one()
        assert invoice.user_id == rider.id
        assert invoice.monto == Decimal("50000")
        assert invoice.estado == "pendiente"
        assert invoice.pagada is False
        assert invoice.fecha_vencimiento == date(2024, 3, 14)
        ledger = db.query(MonthlyCreditRecord).filter_by(suscripcion_id=subscription.id, mes=3, anio=2024).one()
        assert ledger.clases_usadas == 0

    def test_rerun_creates_nothing_new(self, db, first_of_month, pension_rider):
        service = BillingService(db, first_of_month)
        service.generate_monthly_invoices()

        again = service.generate_monthly_invoices()

        assert again.success is True
        assert again.created == 0
        assert again.skipped_existing == 1
        assert db.query(Invoice).count() == 1

    def test_riders_outside_the_batch_are_not_billed(self, db, build, first_of_month):
        escuelita = build.user(RoleName.ESCUELITA)
        build.subscription(escuelita, build.plan(RoleName.ESCUELITA), date(2024, 3, 1), date(2024, 3, 31))
        fixed_term = build.user(RoleName.MEDIA_PENSION)
        build.subscription(
            fixed_term, build.plan(RoleName.MEDIA_PENSION, precio="40000"), date(2024, 1, 1), date(2024, 6, 30)
        )
        blocked = build.user(RoleName.PENSION_COMPLETA, activo=False)
        build.subscription(blocked, build.plan(RoleName.PENSION_COMPLETA, precio="50000"), date(2024, 1, 1))

        report = BillingService(db, first_of_month).generate_monthly_invoices()

        assert report.eligible == 0
        assert report.created == 0
        assert report.success is True
        assert db.query(Invoice).count() == 0

    def test_due_date_is_the_tenth_business_day(self):
        assert invoice_due_date(2024, 3) == date(2024, 3, 14)
        assert invoice_due_date(2024, 6) == date(2024, 6, 14)


class TestHistory:
    @pytest.fixture
    def late_march(self):
        return FixedClock(datetime(2024, 3, 20, 12, 0))

    def test_statuses_and_window(self, db, build, late_march, pension_rider):
        rider, subscription = pension_rider
        build.invoice(subscription, 12, 2023, pagada=True, estado="pagada")
        build.invoice(subscription, 1, 2024, pagada=True, estado="pagada")
        build.invoice(subscription, 2, 2024, fecha_vencimiento=date(2024, 2, 14))
        march = build.invoice(subscription, 3, 2024, fecha_vencimiento=date(2024, 3, 29))
        PaymentProofService(db, late_march).submit(rider.id, march.id, Decimal("50000"), "https://files.test/m.pdf")

        history = BillingService(db, late_march).invoice_history(rider.id)

        assert [(item.mes, item.anio) for item in history] == [(3, 2024), (2, 2024), (1, 2024)]
        assert [item.computed_status for item in history] == ["pendiente", "vencida", "pagada"]
        assert [item.has_pending_proof for item in history] == [True, False, False]

    def test_pending_lists_unpaid_oldest_first(self, db, build, late_march, pension_rider):
        rider, subscription = pension_rider
        build.invoice(subscription, 3, 2024)
        build.invoice(subscription, 2, 2024)
        build.invoice(subscription, 1, 2024, pagada=True, estado="pagada")

        pending = BillingService(db, late_march).pending_invoices(rider.id)

        assert [item.mes for item in pending] == [2, 3]


class TestMarkPaid:
    def test_marks_invoice_paid(self, db, build, clock, pension_rider):
        _, subscription = pension_rider
        invoice = build.invoice(subscription, 3, 2024)

        result = BillingService(db, clock).mark_paid(invoice.id)

        assert result.success is True
        assert result.data.estado == "pagada"
        assert result.data.pagada is True
        assert result.data.fecha_pago == clock.now()

    def test_second_payment_is_refused(self, db, build, clock, pension_rider):
        _, subscription = pension_rider
        invoice = build.invoice(subscription, 3, 2024)
        service = BillingService(db, clock)
        service.mark_paid(invoice.id)

        result = service.mark_paid(invoice.id)

        assert result.reason == "INVOICE_ALREADY_PAID"

    def test_unknown_invoice(self, db, clock):
        result = BillingService(db, clock).mark_paid("01HZZZZZZZZZZZZZZZZZZZZZZZ")
        assert result.reason == "INVOICE_NOT_FOUND"
