"""
Plan sign-up.
"""

from datetime import date, time
from decimal import Decimal

import pytest

from picadero.core.enums import RoleName
from picadero.core.exceptions import NotFoundException
from picadero.models import FixedScheduleSlot, Invoice, Subscription
from picadero.models.subscription import MonthlyCreditRecord
from picadero.services.subscription_service import SubscriptionService


class TestSubscribe:
    def test_escuelita_subscription_runs_to_month_end(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        plan = build.plan(RoleName.ESCUELITA, clases_mes=8)

        result = SubscriptionService(db, clock).subscribe(rider.id, plan.id)

        assert result.success is True
        assert result.data["fecha_inicio"] == date(2024, 3, 5)
        assert result.data["fecha_fin"] == date(2024, 3, 31)
        assert result.data["clases_incluidas"] == 8
        assert result.data["invoice"] is None
        assert result.data["fixed_schedule_required"] is True
        assert db.query(Invoice).count() == 0

    def test_new_plan_supersedes_the_old_one(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        old_plan = build.plan(RoleName.ESCUELITA, clases_mes=4)
        old = build.subscription(rider, old_plan, date(2024, 3, 1), date(2024, 3, 31))
        slot = build.fixed_slot(rider, build.teacher(), 4, time(10))
        new_plan = build.plan(RoleName.ESCUELITA, clases_mes=8)

        result = SubscriptionService(db, clock).subscribe(rider.id, new_plan.id)

        active = db.query(Subscription).filter_by(user_id=rider.id, activa=True).all()
        assert [s.id for s in active] == [result.data["subscription_id"]]
        assert db.get(Subscription, old.id).activa is False
        assert db.get(FixedScheduleSlot, slot.id).activo is False

    def test_pension_is_open_ended_and_invoiced(self, db, build, clock):
        rider = build.user(RoleName.MEDIA_PENSION)
        plan = build.plan(RoleName.MEDIA_PENSION, clases_mes=8, precio="40000")

        result = SubscriptionService(db, clock).subscribe(rider.id, plan.id)

        assert result.success is True
        assert result.data["fecha_fin"] is None
        assert result.data["fixed_schedule_required"] is False
        invoice = result.data["invoice"]
        assert (invoice.mes, invoice.anio) == (3, 2024)
        assert invoice.monto == Decimal("40000")
        assert invoice.fecha_vencimiento == date(2024, 3, 14)
        ledger = (
            db.query(MonthlyCreditRecord)
            .filter_by(suscripcion_id=result.data["subscription_id"], mes=3, anio=2024)
            .one()
        )
        assert ledger.clases_usadas == 0

    def test_plan_must_match_the_role(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        plan = build.plan(RoleName.PENSION_COMPLETA, precio="50000")

        result = SubscriptionService(db, clock).subscribe(rider.id, plan.id)

        assert result.reason == "PLAN_ROLE_MISMATCH"
        assert db.query(Subscription).count() == 0

    def test_inactive_plan(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        plan = build.plan(RoleName.ESCUELITA, activo=False)

        result = SubscriptionService(db, clock).subscribe(rider.id, plan.id)

        assert result.reason == "PLAN_NOT_FOUND"

    def test_unknown_user(self, db, build, clock):
        plan = build.plan(RoleName.ESCUELITA)
        result = SubscriptionService(db, clock).subscribe("01HZZZZZZZZZZZZZZZZZZZZZZZ", plan.id)
        assert result.reason == "USER_NOT_FOUND"


class TestCurrentSubscription:
    def test_escuelita_credits_come_from_the_subscription(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        plan = build.plan(RoleName.ESCUELITA, clases_mes=8)
        build.subscription(rider, plan, date(2024, 3, 1), date(2024, 3, 31), clases_usadas=3)

        view = SubscriptionService(db, clock).current(rider.id)

        assert view.plan_id == plan.id
        assert view.plan_type == "escuelita"
        assert (view.clases_usadas, view.clases_disponibles) == (3, 5)
        assert view.credit_month is None

    def test_pension_credits_come_from_this_months_ledger(self, db, build, clock):
        rider = build.user(RoleName.PENSION_COMPLETA)
        plan = build.plan(RoleName.PENSION_COMPLETA, clases_mes=8, precio="50000")
        subscription = build.subscription(rider, plan, date(2024, 1, 1), clases_usadas=7)
        db.add(MonthlyCreditRecord(suscripcion_id=subscription.id, mes=2, anio=2024, clases_usadas=8))
        db.add(MonthlyCreditRecord(suscripcion_id=subscription.id, mes=3, anio=2024, clases_usadas=2))
        db.commit()

        view = SubscriptionService(db, clock).current(rider.id)

        assert (view.credit_month, view.credit_year) == (3, 2024)
        assert (view.clases_usadas, view.clases_disponibles) == (2, 6)
        assert view.precio == Decimal("50000")
        assert view.fecha_fin is None

    def test_no_active_subscription(self, db, build, clock):
        rider = build.user(RoleName.ESCUELITA)
        build.subscription(rider, build.plan(), activa=False)

        assert SubscriptionService(db, clock).current(rider.id) is None

    def test_unknown_user(self, db, clock):
        with pytest.raises(NotFoundException):
            SubscriptionService(db, clock).current("01HZZZZZZZZZZZZZZZZZZZZZZZ")
