# backend/picadero/services/role_policy.py
"""
Per-role capability table.

Every role-dependent decision in booking and billing reads this table
instead of comparing role strings inline, so adding a tier means adding one
row here.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..core.enums import RoleName


class CreditScope(str, Enum):
    GLOBAL = "global"  # subscription.clases_usadas
    MONTHLY = "monthly"  # clases_mensuales row for the lesson's month
    NONE = "none"


@dataclass(frozen=True)
class RolePolicy:
    role: RoleName
    is_rider: bool
    credit_scope: CreditScope
    blocks_past_dates: bool
    payment_gated: bool
    one_lesson_per_day: bool
    checks_coowner: bool
    billed_monthly: bool
    fixed_schedule: bool
    requires_own_horse: bool


ROLE_POLICIES: Dict[RoleName, RolePolicy] = {
    RoleName.ESCUELITA: RolePolicy(
        role=RoleName.ESCUELITA,
        is_rider=True,
        credit_scope=CreditScope.GLOBAL,
        blocks_past_dates=False,
        payment_gated=False,
        one_lesson_per_day=False,
        checks_coowner=False,
        billed_monthly=False,
        fixed_schedule=True,
        requires_own_horse=False,
    ),
    RoleName.PENSION_COMPLETA: RolePolicy(
        role=RoleName.PENSION_COMPLETA,
        is_rider=True,
        credit_scope=CreditScope.MONTHLY,
        blocks_past_dates=True,
        payment_gated=True,
        one_lesson_per_day=True,
        checks_coowner=False,
        billed_monthly=True,
        fixed_schedule=False,
        requires_own_horse=True,
    ),
    RoleName.MEDIA_PENSION: RolePolicy(
        role=RoleName.MEDIA_PENSION,
        is_rider=True,
        credit_scope=CreditScope.MONTHLY,
        blocks_past_dates=True,
        payment_gated=True,
        one_lesson_per_day=True,
        checks_coowner=True,
        billed_monthly=True,
        fixed_schedule=False,
        requires_own_horse=True,
    ),
    RoleName.PROFESOR: RolePolicy(
        role=RoleName.PROFESOR,
        is_rider=False,
        credit_scope=CreditScope.NONE,
        blocks_past_dates=False,
        payment_gated=False,
        one_lesson_per_day=False,
        checks_coowner=False,
        billed_monthly=False,
        fixed_schedule=False,
        requires_own_horse=False,
    ),
    RoleName.ADMIN: RolePolicy(
        role=RoleName.ADMIN,
        is_rider=False,
        credit_scope=CreditScope.NONE,
        blocks_past_dates=False,
        payment_gated=False,
        one_lesson_per_day=False,
        checks_coowner=False,
        billed_monthly=False,
        fixed_schedule=False,
        requires_own_horse=False,
    ),
}


def policy_for(role: str) -> Optional[RolePolicy]:
    """Policy for a stored role value, or None for an unknown role."""
    try:
        return ROLE_POLICIES[RoleName(role)]
    except ValueError:
        return None
