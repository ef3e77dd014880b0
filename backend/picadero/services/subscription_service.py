# backend/picadero/services/subscription_service.py
"""
Plan sign-up.

A rider holds at most one active subscription. Subscribing supersedes the
previous subscription and its fixed weekly slots in the same transaction.
Escuelita subscriptions run to the end of the start month; pension tiers
are open-ended and are invoiced for the start month straight away.
The current subscription view reports the credits the rider has left.
"""

from datetime import date
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import PENSION_ROLES, RejectionReason, RoleName
from ..core.exceptions import NotFoundException, RepositoryException, ServiceException
from ..repositories.factory import RepositoryFactory
from ..schemas.billing import InvoiceRead
from ..schemas.results import OperationResult
from ..schemas.subscription import SubscriptionView
from ..utils.dates import month_end
from .base import BaseService
from .billing_service import BillingService
from .credit_ledger_service import CreditLedgerService
from .role_policy import CreditScope, policy_for

logger = logging.getLogger(__name__)


class SubscriptionService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        billing: Optional[BillingService] = None,
    ):
        super().__init__(db, clock)
        self.billing = billing or BillingService(db, self.clock)
        self.ledger = CreditLedgerService(db, self.clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.plan_repository = RepositoryFactory.create_plan_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)
        self.schedule_repository = RepositoryFactory.create_schedule_repository(db)

    @BaseService.measure_operation("subscribe")
    def subscribe(self, user_id: str, plan_id: str, start: Optional[date] = None) -> OperationResult:
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            return OperationResult.fail(RejectionReason.USER_NOT_FOUND, "User not found")

        plan = self.plan_repository.get_by_id(plan_id)
        if plan is None or not plan.activo:
            return OperationResult.fail(RejectionReason.PLAN_NOT_FOUND, "Plan not found or inactive")
        if plan.tipo != user.rol:
            return OperationResult.fail(
                RejectionReason.PLAN_ROLE_MISMATCH,
                "The plan does not match the rider's role",
                details={"plan_type": plan.tipo, "role": user.rol},
            )

        start = start or self.clock.today()
        is_pension = user.rol in {role.value for role in PENSION_ROLES}
        end = None if is_pension else month_end(start.year, start.month)

        invoice = None
        try:
            with self.transaction():
                superseded = self.subscription_repository.deactivate_for_user(user_id)
                self.schedule_repository.deactivate_for_user(user_id)
                subscription = self.subscription_repository.create(
                    user_id=user_id,
                    plan_id=plan.id,
                    fecha_inicio=start,
                    fecha_fin=end,
                    clases_incluidas=int(plan.clases_mes),
                    clases_usadas=0,
                    activa=True,
                )
                self.subscription_repository.refresh(subscription)
                if is_pension:
                    invoice = self.billing.issue_invoice(subscription, start.month, start.year)
        except (RepositoryException, ServiceException) as exc:
            self.logger.error(f"Subscribing {user_id} to {plan_id} failed: {str(exc)}")
            return OperationResult.fail(
                RejectionReason.STORE_ERROR, "The subscription could not be saved, please try again"
            )

        self.log_operation(
            "subscribe",
            user_id=user_id,
            plan_id=plan.id,
            subscription_id=subscription.id,
            superseded=superseded,
            invoiced=invoice is not None,
        )
        data = {
            "subscription_id": subscription.id,
            "plan_id": plan.id,
            "fecha_inicio": subscription.fecha_inicio,
            "fecha_fin": subscription.fecha_fin,
            "clases_incluidas": subscription.clases_incluidas,
            "invoice": InvoiceRead.model_validate(invoice) if invoice is not None else None,
            "fixed_schedule_required": user.rol == RoleName.ESCUELITA.value,
        }
        return OperationResult.ok(data)

    @BaseService.measure_operation("current_subscription")
    def current(self, user_id: str) -> Optional[SubscriptionView]:
        """
        The rider's active subscription, or None when there is none.

        Escuelita credits are the subscription's global counters; pension
        tiers report the ledger of the current month.

        Raises:
            NotFoundException: unknown rider
        """
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundException(f"User {user_id} not found", code="USER_NOT_FOUND")
        active = self.subscription_repository.get_active_for_user(user_id)
        if not active:
            return None

        subscription = active[0]
        policy = policy_for(user.rol)
        credit_month = credit_year = None
        if policy is not None and policy.credit_scope == CreditScope.MONTHLY:
            today = self.clock.today()
            credit_month, credit_year = today.month, today.year
            balance = self.ledger.available(subscription.id, credit_month, credit_year)
            used, available = balance.used, balance.available
        else:
            used = int(subscription.clases_usadas or 0)
            available = int(subscription.clases_incluidas or 0) - used

        return SubscriptionView(
            id=subscription.id,
            plan_id=subscription.plan_id,
            plan_name=subscription.plan.nombre,
            plan_type=subscription.plan.tipo,
            precio=subscription.plan.precio,
            fecha_inicio=subscription.fecha_inicio,
            fecha_fin=subscription.fecha_fin,
            clases_incluidas=int(subscription.clases_incluidas or 0),
            clases_usadas=used,
            clases_disponibles=available,
            credit_month=credit_month,
            credit_year=credit_year,
        )
