"""
Monthly credit ledger for pension subscriptions.
"""

from datetime import date

import pytest

from picadero.core.enums import RoleName
from picadero.models.subscription import MonthlyCreditRecord
from picadero.services.credit_ledger_service import CreditLedgerService
from picadero.services.role_policy import CreditScope, policy_for


@pytest.fixture
def subscription(build):
    rider = build.user(RoleName.PENSION_COMPLETA)
    plan = build.plan(RoleName.PENSION_COMPLETA, clases_mes=8, precio="50000")
    return build.subscription(rider, plan, date(2024, 1, 1))


@pytest.fixture
def ledger(db, clock):
    return CreditLedgerService(db, clock)


class TestLedger:
    def test_get_or_create_returns_one_row_per_month(self, db, ledger, subscription):
        first = ledger.get_or_create(subscription.id, 3, 2024)
        second = ledger.get_or_create(subscription.id, 3, 2024)

        assert first.id == second.id
        assert db.query(MonthlyCreditRecord).count() == 1

    def test_reading_a_fresh_month_creates_nothing(self, db, ledger, subscription):
        balance = ledger.available(subscription.id, 4, 2024)

        assert (balance.included, balance.used, balance.available) == (8, 0, 8)
        assert db.query(MonthlyCreditRecord).count() == 0

    def test_increment_and_decrement(self, ledger, subscription):
        ledger.increment(subscription.id, 3, 2024)
        ledger.increment(subscription.id, 3, 2024)
        ledger.decrement(subscription.id, 3, 2024)

        assert ledger.available(subscription.id, 3, 2024).available == 7

    def test_usage_never_drops_below_zero(self, ledger, subscription):
        ledger.decrement(subscription.id, 3, 2024)

        assert ledger.available(subscription.id, 3, 2024).used == 0

    def test_unknown_subscription_has_no_credits(self, ledger):
        balance = ledger.available("01HZZZZZZZZZZZZZZZZZZZZZZZ", 3, 2024)
        assert balance.available == 0


class TestRolePolicy:
    def test_escuelita_uses_the_global_counter(self):
        policy = policy_for("escuelita")
        assert policy.credit_scope == CreditScope.GLOBAL
        assert policy.payment_gated is False
        assert policy.fixed_schedule is True

    def test_pension_tiers_are_gated_monthly(self):
        for role in ("pension_completa", "media_pension"):
            policy = policy_for(role)
            assert policy.credit_scope == CreditScope.MONTHLY
            assert policy.payment_gated is True
            assert policy.one_lesson_per_day is True
            assert policy.blocks_past_dates is True

    def test_only_media_pension_checks_the_coowner(self):
        assert policy_for("media_pension").checks_coowner is True
        assert policy_for("pension_completa").checks_coowner is False

    def test_staff_are_not_riders(self):
        assert policy_for("profesor").is_rider is False
        assert policy_for("admin").credit_scope == CreditScope.NONE

    def test_unknown_role(self):
        assert policy_for("visitante") is None
