# backend/picadero/services/reservation_service.py
"""
Reservation engine.

Validates lesson requests through an ordered pipeline and books,
reschedules or cancels lessons. The pipeline stops at the first failing
step and reports a machine-readable reason:

    1. user exists and is active
    2. no past dates for pension tiers
    3. rider has a current subscription (pension tiers also own an active horse)
    4. rider has class credits left (global or for the lesson's month)
    5. monthly payment gate for pension tiers
    6. teacher free for the interval
    7. horse free for the interval
    8. horse exists, is active and under its daily cap
    9. pension riders hold at most one lesson per day
   10. media pension riders do not overlap their horse's co-owner

Validation reads are not locked. Two requests can both pass; the partial
unique indexes on (teacher, date, start) and (horse, date, start) reject the
second insert, which is reported as the matching availability reason.
"""

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import HorseStatus, LessonStatus, RejectionReason
from ..core.exceptions import BookingRejection, RepositoryException, ServiceException
from ..models.horse import Horse
from ..models.lesson import Lesson
from ..models.subscription import Subscription
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.lesson import CreditBalance, LessonRead, RescheduleResult
from ..schemas.results import OperationResult
from ..utils.dates import month_key, next_month
from .base import BaseService
from .credit_ledger_service import CreditLedgerService
from .role_policy import CreditScope, RolePolicy, policy_for

logger = logging.getLogger(__name__)

TEACHER_SLOT_CONSTRAINT = "uq_clases_profesor_slot"
HORSE_SLOT_CONSTRAINT = "uq_clases_caballo_slot"


@dataclass
class LessonRequest:
    user_id: str
    teacher_id: str
    horse_id: str
    fecha: date
    start: time
    end: time
    notes: Optional[str] = None
    allow_extra: bool = False
    exclude_lesson_id: Optional[str] = None
    skip_credit_check: bool = False


@dataclass
class ValidationContext:
    """What the pipeline loaded; reused by the write phase."""

    user: User
    policy: RolePolicy
    subscription: Optional[Subscription] = None
    horse: Optional[Horse] = None
    balance: Optional[CreditBalance] = None


class ReservationService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        ledger: Optional[CreditLedgerService] = None,
    ):
        super().__init__(db, clock)
        self.ledger = ledger or CreditLedgerService(db, self.clock)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.horse_repository = RepositoryFactory.create_horse_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.subscription_repository = RepositoryFactory.create_subscription_repository(db)
        self.invoice_repository = RepositoryFactory.create_invoice_repository(db)

    # ------------------------------------------------------------------ public

    @BaseService.measure_operation("validate_lesson")
    def validate(
        self,
        user_id: str,
        teacher_id: str,
        horse_id: str,
        fecha: date,
        start: time,
        end: time,
        allow_extra: bool = False,
    ) -> OperationResult:
        """Run the pipeline without writing anything."""
        request = LessonRequest(user_id, teacher_id, horse_id, fecha, start, end, allow_extra=allow_extra)
        try:
            context = self.validate_request(request)
        except BookingRejection as exc:
            self._log_rejection("validate", exc, request)
            return OperationResult.from_exception(exc)
        except RepositoryException as exc:
            return self._store_error("validate", exc)

        data: Dict[str, Any] = {"valid": True}
        if context.balance is not None:
            data["credits_available"] = context.balance.available
        return OperationResult.ok(data)

    @BaseService.measure_operation("book_lesson")
    def book(
        self,
        user_id: str,
        teacher_id: str,
        horse_id: str,
        fecha: date,
        start: time,
        end: time,
        notes: Optional[str] = None,
        allow_extra: bool = False,
    ) -> OperationResult:
        """
        Book a lesson.

        Credits are re-read inside the write transaction. With no credits
        left the booking is refused unless ``allow_extra`` is set, in which
        case the lesson is stored as an extra and consumes nothing.
        """
        request = LessonRequest(
            user_id, teacher_id, horse_id, fecha, start, end, notes=notes, allow_extra=allow_extra
        )
        try:
            context = self.validate_request(request)
            with self.transaction():
                es_extra = self._resolve_extra(context, fecha, allow_extra)
                lesson = self._insert_lesson(request, es_extra=es_extra)
                if not es_extra:
                    self._consume_credit(context, fecha)
        except BookingRejection as exc:
            self._log_rejection("book", exc, request)
            return OperationResult.from_exception(exc)
        except (RepositoryException, ServiceException) as exc:
            return self._store_error("book", exc)

        prometheus_metrics.record_lesson_request("book", "success")
        self.log_operation(
            "book_lesson", lesson_id=lesson.id, user_id=user_id, es_extra=lesson.es_extra
        )
        return OperationResult.ok(LessonRead.model_validate(lesson))

    @BaseService.measure_operation("reschedule_lesson")
    def reschedule(
        self,
        lesson_id: str,
        new_fecha: date,
        new_start: time,
        new_end: time,
        user_id: str,
    ) -> OperationResult:
        """
        Move a lesson to a new date/time with the same teacher and horse.

        The original lesson is kept as ``reagendada`` and the new lesson
        links back to it. A non-extra pension lesson that changes month
        moves its credit from the old month to the new one.
        """
        request: Optional[LessonRequest] = None
        try:
            original = self._load_owned_active_lesson(lesson_id, user_id)
            self._check_notice(new_fecha, new_start)

            user = self.user_repository.get_by_id(user_id)
            policy = policy_for(user.rol) if user else None
            month_changes = month_key(original.fecha.year, original.fecha.month) != month_key(
                new_fecha.year, new_fecha.month
            )
            moves_credit = (
                policy is not None
                and policy.credit_scope == CreditScope.MONTHLY
                and not original.es_extra
                and month_changes
            )

            request = LessonRequest(
                user_id=user_id,
                teacher_id=original.profesor_id,
                horse_id=original.caballo_id,
                fecha=new_fecha,
                start=new_start,
                end=new_end,
                notes=original.notas,
                exclude_lesson_id=original.id,
                skip_credit_check=not moves_credit,
            )
            context = self.validate_request(request)

            with self.transaction():
                self.lesson_repository.update(original.id, estado=LessonStatus.REAGENDADA.value)
                new_lesson = self._insert_lesson(
                    request,
                    es_extra=bool(original.es_extra),
                    es_reagendada=True,
                    clase_original_id=original.id,
                )
                if moves_credit and context.subscription is not None:
                    self.ledger.decrement(
                        context.subscription.id, original.fecha.month, original.fecha.year
                    )
                    self.ledger.increment(context.subscription.id, new_fecha.month, new_fecha.year)
        except BookingRejection as exc:
            self._log_rejection("reschedule", exc, request, lesson_id=lesson_id)
            return OperationResult.from_exception(exc)
        except (RepositoryException, ServiceException) as exc:
            return self._store_error("reschedule", exc)

        prometheus_metrics.record_lesson_request("reschedule", "success")
        self.log_operation(
            "reschedule_lesson", lesson_id=original.id, new_lesson_id=new_lesson.id, user_id=user_id
        )
        return OperationResult.ok(
            RescheduleResult(
                original=LessonRead.model_validate(original),
                lesson=LessonRead.model_validate(new_lesson),
            )
        )

    @BaseService.measure_operation("cancel_lesson")
    def cancel(self, lesson_id: str, user_id: str) -> OperationResult:
        """
        Cancel a lesson at least the minimum notice before it starts.

        Non-extra lessons give their credit back: escuelita riders to the
        subscription counter, pension riders to the lesson's month.
        """
        try:
            lesson = self._load_owned_active_lesson(lesson_id, user_id)
            self._check_notice(lesson.fecha, lesson.hora_inicio)

            user = self.user_repository.get_by_id(user_id)
            policy = policy_for(user.rol) if user else None

            with self.transaction():
                self.lesson_repository.update(lesson.id, estado=LessonStatus.CANCELADA.value)
                if not lesson.es_extra and policy is not None and policy.is_rider:
                    self._refund_credit(policy, user_id, lesson.fecha)
        except BookingRejection as exc:
            self._log_rejection("cancel", exc, None, lesson_id=lesson_id)
            return OperationResult.from_exception(exc)
        except (RepositoryException, ServiceException) as exc:
            return self._store_error("cancel", exc)

        prometheus_metrics.record_lesson_request("cancel", "success")
        self.log_operation("cancel_lesson", lesson_id=lesson.id, user_id=user_id)
        return OperationResult.ok(LessonRead.model_validate(lesson))

    # -------------------------------------------------------------- pipeline

    def validate_request(self, request: LessonRequest) -> ValidationContext:
        """
        Run every pipeline step in order.

        Raises:
            BookingRejection: at the first failing step
        """
        if request.end <= request.start:
            raise BookingRejection(
                RejectionReason.INVALID_TIME_RANGE,
                "Lesson end time must be after its start time",
                details={"start": request.start.isoformat(), "end": request.end.isoformat()},
            )

        context = self._check_user(request.user_id)
        policy = context.policy

        if policy.blocks_past_dates:
            self._check_not_past(request.fecha)

        if policy.is_rider:
            context.subscription = self._check_current_plan(request.user_id)
            if policy.requires_own_horse:
                self._check_owns_horse(request.user_id)
            if not request.skip_credit_check:
                context.balance = self._check_credits(context, request)
            if policy.payment_gated:
                self._check_payment_gate(request.user_id, request.fecha)

        self._check_teacher_free(request)
        context.horse = self.horse_repository.get_by_id(request.horse_id)
        self._check_horse_free(request, context)
        self._check_horse_capacity(request, context.horse)

        if policy.one_lesson_per_day:
            self._check_one_per_day(request)
        if policy.checks_coowner:
            self._check_coowner(request, context.horse)

        return context

    def _check_user(self, user_id: str) -> ValidationContext:
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise BookingRejection(RejectionReason.USER_NOT_FOUND, "User not found")
        if not user.activo:
            raise BookingRejection(RejectionReason.USER_BLOCKED, "User account is disabled")
        policy = policy_for(user.rol)
        if policy is None:
            raise BookingRejection(
                RejectionReason.ROLE_NOT_ALLOWED,
                f"Role {user.rol} cannot book lessons",
                details={"role": user.rol},
            )
        return ValidationContext(user=user, policy=policy)

    def _check_not_past(self, fecha: date) -> None:
        today = self.clock.today()
        if fecha < today:
            raise BookingRejection(
                RejectionReason.PAST_DATE,
                "Lessons cannot be booked on past dates",
                details={"date": fecha.isoformat(), "today": today.isoformat()},
            )

    def _check_current_plan(self, user_id: str) -> Subscription:
        subscription = self.subscription_repository.get_current_for_user(user_id, self.clock.today())
        if subscription is None:
            raise BookingRejection(RejectionReason.NO_ACTIVE_PLAN, "No active plan")
        return subscription

    def _check_owns_horse(self, user_id: str) -> None:
        """Pension accounts stay pending until an administrator assigns them a horse."""
        if self.horse_repository.get_owned_active(user_id):
            return
        raise BookingRejection(
            RejectionReason.PENDING_APPROVAL,
            "The account is pending approval: no horse has been assigned yet",
            details={"has_horse": False, "has_subscription": True},
        )

    def _check_credits(self, context: ValidationContext, request: LessonRequest) -> CreditBalance:
        balance = self._balance(context.policy, context.subscription, request.fecha)
        if balance.available <= 0 and not request.allow_extra:
            raise BookingRejection(
                RejectionReason.NO_CREDITS_AVAILABLE,
                "No classes left in the current plan",
                details=balance.model_dump(),
            )
        return balance

    def _check_payment_gate(self, user_id: str, fecha: date) -> None:
        """
        Pension riders may book the current month and the next one only.

        Until the grace day the current month can be booked unpaid; after it
        the current invoice must be settled. Booking next month also needs the
        current month settled once its grace is over, and lessons after the
        grace day of next month need next month settled too.
        """
        today = self.clock.today()
        grace_day = settings.payment_grace_day
        current = (today.year, today.month)
        following = next_month(*current)
        lesson_month = (fecha.year, fecha.month)

        if month_key(*lesson_month) < month_key(*current):
            raise BookingRejection(
                RejectionReason.PAST_DATE,
                f"Lessons cannot be booked in past months ({fecha.month}/{fecha.year})",
                details={"date": fecha.isoformat()},
            )
        if month_key(*lesson_month) > month_key(*following):
            raise BookingRejection(
                RejectionReason.OUTSIDE_BOOKING_WINDOW,
                f"Lessons can only be booked for {current[1]}/{current[0]} "
                f"or {following[1]}/{following[0]}",
                details={"date": fecha.isoformat()},
            )

        if lesson_month == current:
            if today.day <= grace_day:
                return
            self._require_paid(user_id, *current)
            return

        if today.day > grace_day:
            self._require_paid(user_id, *current)
        if fecha.day <= grace_day:
            return
        self._require_paid(user_id, *following)

    def _require_paid(self, user_id: str, year: int, month: int) -> None:
        if self.invoice_repository.has_paid_for_month(
            user_id, month, year, settings.paid_invoice_statuses
        ):
            return
        raise BookingRejection(
            RejectionReason.PAYMENT_PENDING,
            f"Payment for {month}/{year} is pending",
            details={"owed_month": month, "owed_year": year},
        )

    def _check_teacher_free(self, request: LessonRequest) -> None:
        conflicts = self.lesson_repository.get_teacher_conflicts(
            request.teacher_id,
            request.fecha,
            request.start,
            request.end,
            exclude_lesson_id=request.exclude_lesson_id,
        )
        if conflicts:
            raise BookingRejection(
                RejectionReason.TEACHER_UNAVAILABLE,
                "The teacher already has a lesson at that time",
                details=self._conflict_details(conflicts[0]),
            )

    def _check_horse_free(self, request: LessonRequest, context: ValidationContext) -> None:
        ignore = ()
        # A shared horse's co-owner overlap is reported by the co-owner step.
        if context.policy.checks_coowner and context.horse is not None:
            co_owner = context.horse.co_owner_of(request.user_id)
            if co_owner:
                ignore = (co_owner,)

        conflicts = self.lesson_repository.get_horse_conflicts(
            request.horse_id,
            request.fecha,
            request.start,
            request.end,
            exclude_lesson_id=request.exclude_lesson_id,
            ignore_user_ids=ignore,
        )
        if conflicts:
            raise BookingRejection(
                RejectionReason.HORSE_UNAVAILABLE,
                "The horse already has a lesson at that time",
                details=self._conflict_details(conflicts[0]),
            )

    def _check_horse_capacity(self, request: LessonRequest, horse: Optional[Horse]) -> None:
        if horse is None:
            raise BookingRejection(RejectionReason.HORSE_NOT_FOUND, "Horse not found")
        if not horse.activo or horse.estado != HorseStatus.ACTIVO.value:
            raise BookingRejection(
                RejectionReason.HORSE_NOT_ACTIVE,
                f"Horse {horse.nombre} is not available ({horse.estado})",
                details={"estado": horse.estado},
            )
        booked = self.lesson_repository.count_horse_lessons_on(
            horse.id, request.fecha, exclude_lesson_id=request.exclude_lesson_id
        )
        if booked >= horse.limite_clases_dia:
            raise BookingRejection(
                RejectionReason.DAILY_CAP_REACHED,
                f"Horse {horse.nombre} reached its daily limit of {horse.limite_clases_dia} lessons",
                details={"limit": horse.limite_clases_dia, "booked": booked},
            )

    def _check_one_per_day(self, request: LessonRequest) -> None:
        existing = self.lesson_repository.get_user_lessons_on(
            request.user_id, request.fecha, exclude_lesson_id=request.exclude_lesson_id
        )
        if existing:
            raise BookingRejection(
                RejectionReason.SELF_CONFLICT,
                "You already have a lesson booked that day",
                details=self._conflict_details(existing[0]),
            )

    def _check_coowner(self, request: LessonRequest, horse: Horse) -> None:
        co_owner = horse.co_owner_of(request.user_id)
        if not co_owner:
            return
        conflicts = self.lesson_repository.get_user_horse_conflicts(
            co_owner,
            horse.id,
            request.fecha,
            request.start,
            request.end,
            exclude_lesson_id=request.exclude_lesson_id,
        )
        if conflicts:
            raise BookingRejection(
                RejectionReason.COOWNER_CONFLICT,
                "The horse's co-owner already rides it at that time",
                details=self._conflict_details(conflicts[0]),
            )

    # ----------------------------------------------------------------- helpers

    def _balance(
        self, policy: RolePolicy, subscription: Optional[Subscription], fecha: date
    ) -> CreditBalance:
        if subscription is None:
            return CreditBalance(included=0, used=0, available=0)
        if policy.credit_scope == CreditScope.GLOBAL:
            included = int(subscription.clases_incluidas or 0)
            used = int(subscription.clases_usadas or 0)
            return CreditBalance(included=included, used=used, available=included - used)
        return self.ledger.available(subscription.id, fecha.month, fecha.year)

    def _resolve_extra(self, context: ValidationContext, fecha: date, allow_extra: bool) -> bool:
        """Fresh credit read at write time; decides whether the lesson is an extra."""
        if not context.policy.is_rider or context.subscription is None:
            return False
        self.subscription_repository.refresh(context.subscription)
        balance = self._balance(context.policy, context.subscription, fecha)
        if balance.available > 0:
            return False
        if allow_extra:
            return True
        raise BookingRejection(
            RejectionReason.NO_CREDITS_AVAILABLE,
            "No classes left in the current plan",
            details=balance.model_dump(),
        )

    def _consume_credit(self, context: ValidationContext, fecha: date) -> None:
        subscription = context.subscription
        if subscription is None:
            return
        if context.policy.credit_scope == CreditScope.GLOBAL:
            self.subscription_repository.increment_used(subscription.id)
            prometheus_metrics.record_credit_movement("global", "consume")
        elif context.policy.credit_scope == CreditScope.MONTHLY:
            self.ledger.increment(subscription.id, fecha.month, fecha.year)

    def _refund_credit(self, policy: RolePolicy, user_id: str, fecha: date) -> None:
        subscription = self.subscription_repository.get_current_for_user(user_id, self.clock.today())
        if subscription is None:
            self.logger.info(
                "No current subscription to refund a class to", extra={"user_id": user_id}
            )
            return
        if policy.credit_scope == CreditScope.GLOBAL:
            if self.subscription_repository.decrement_used(subscription.id):
                prometheus_metrics.record_credit_movement("global", "refund")
        elif policy.credit_scope == CreditScope.MONTHLY:
            self.ledger.decrement(subscription.id, fecha.month, fecha.year)

    def _insert_lesson(
        self,
        request: LessonRequest,
        *,
        es_extra: bool,
        es_reagendada: bool = False,
        clase_original_id: Optional[str] = None,
    ) -> Lesson:
        try:
            return self.lesson_repository.create(
                user_id=request.user_id,
                profesor_id=request.teacher_id,
                caballo_id=request.horse_id,
                fecha=request.fecha,
                hora_inicio=request.start,
                hora_fin=request.end,
                estado=LessonStatus.PROGRAMADA.value,
                es_extra=es_extra,
                es_reagendada=es_reagendada,
                clase_original_id=clase_original_id,
                notas=request.notes,
            )
        except RepositoryException as exc:
            integrity_error = exc.__cause__
            if not isinstance(integrity_error, IntegrityError):
                raise
            reason, message = self._resolve_integrity_conflict(integrity_error)
            if reason is None:
                raise
            raise BookingRejection(
                reason,
                message,
                details={"date": request.fecha.isoformat(), "start": request.start.isoformat()},
            ) from exc

    def _resolve_integrity_conflict(
        self, integrity_error: IntegrityError
    ) -> Tuple[Optional[RejectionReason], str]:
        """Map a unique-index violation on lesson insert to the availability reason."""
        constraint_name = ""
        orig = getattr(integrity_error, "orig", None)
        diag = getattr(orig, "diag", None)
        if diag is not None:
            constraint_name = getattr(diag, "constraint_name", "") or ""

        text = str(orig) if orig is not None else str(integrity_error)
        if constraint_name == TEACHER_SLOT_CONSTRAINT or (
            not constraint_name and "clases.profesor_id" in text
        ):
            return RejectionReason.TEACHER_UNAVAILABLE, "The teacher already has a lesson at that time"
        if constraint_name == HORSE_SLOT_CONSTRAINT or (
            not constraint_name and "clases.caballo_id" in text
        ):
            return RejectionReason.HORSE_UNAVAILABLE, "The horse already has a lesson at that time"
        return None, ""

    def _load_owned_active_lesson(self, lesson_id: str, user_id: str) -> Lesson:
        lesson = self.lesson_repository.get_by_id(lesson_id)
        if lesson is None or lesson.user_id != user_id:
            raise BookingRejection(RejectionReason.LESSON_NOT_FOUND, "Lesson not found")
        if lesson.estado != LessonStatus.PROGRAMADA.value:
            raise BookingRejection(
                RejectionReason.LESSON_NOT_ACTIVE,
                f"Lesson is {lesson.estado}",
                details={"estado": lesson.estado},
            )
        return lesson

    def _check_notice(self, fecha: date, start: time) -> None:
        hours = self.clock.hours_until(fecha, start)
        required = settings.min_notice_hours
        if hours < required:
            raise BookingRejection(
                RejectionReason.INSUFFICIENT_NOTICE,
                f"Changes must be made at least {required} hours in advance",
                details={"required_hours": required, "provided_hours": round(hours, 2)},
            )

    @staticmethod
    def _conflict_details(lesson: Lesson) -> Dict[str, Any]:
        return {
            "conflicting_lesson_id": lesson.id,
            "conflicting_range": f"{lesson.hora_inicio.strftime('%H:%M')}-{lesson.hora_fin.strftime('%H:%M')}",
        }

    def _log_rejection(
        self,
        operation: str,
        exc: BookingRejection,
        request: Optional[LessonRequest],
        **context: Any,
    ) -> None:
        prometheus_metrics.record_lesson_request(operation, exc.reason)
        if request is not None:
            context.setdefault("user_id", request.user_id)
            context.setdefault("lesson_date", request.fecha.isoformat())
        self.logger.info(
            f"{operation} rejected: {exc.code}",
            extra={"reason": exc.code, **context},
        )

    def _store_error(self, operation: str, exc: Exception) -> OperationResult:
        self.logger.error(f"{operation} failed on the store: {str(exc)}")
        prometheus_metrics.record_lesson_request(operation, RejectionReason.STORE_ERROR.value)
        return OperationResult.fail(
            RejectionReason.STORE_ERROR,
            "The request could not be saved, please try again",
        )
