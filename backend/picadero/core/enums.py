# backend/picadero/core/enums.py
"""
Core enums for the Picadero academy backend.

Stored values are the Spanish literals persisted in the database, so the
enum members compare equal to the raw column values.
"""

from enum import Enum


class RoleName(str, Enum):
    """Closed set of user roles. A user's role never changes after creation."""

    ESCUELITA = "escuelita"
    PENSION_COMPLETA = "pension_completa"
    MEDIA_PENSION = "media_pension"
    PROFESOR = "profesor"
    ADMIN = "admin"


RIDER_ROLES = frozenset({RoleName.ESCUELITA, RoleName.PENSION_COMPLETA, RoleName.MEDIA_PENSION})
PENSION_ROLES = frozenset({RoleName.PENSION_COMPLETA, RoleName.MEDIA_PENSION})


class PlanType(str, Enum):
    ESCUELITA = "escuelita"
    PENSION_COMPLETA = "pension_completa"
    MEDIA_PENSION = "media_pension"


class HorseType(str, Enum):
    ESCUELA = "escuela"
    PRIVADO = "privado"


class HorseStatus(str, Enum):
    ACTIVO = "activo"
    DESCANSO = "descanso"
    LESIONADO = "lesionado"


class LessonStatus(str, Enum):
    """Lesson lifecycle. Only PROGRAMADA lessons hold a slot."""

    PROGRAMADA = "programada"
    COMPLETADA = "completada"
    CANCELADA = "cancelada"
    REAGENDADA = "reagendada"


class InvoiceStatus(str, Enum):
    PENDIENTE = "pendiente"
    PAGADA = "pagada"
    VENCIDA = "vencida"


class ProofStatus(str, Enum):
    PENDIENTE = "pendiente"
    APROBADO = "aprobado"
    RECHAZADO = "rechazado"


class RejectionReason(str, Enum):
    """
    Machine-readable reasons returned when an operation is refused.

    Callers match on these codes; messages attached to rejections are for
    humans and may change.
    """

    # Booking pipeline
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_BLOCKED = "USER_BLOCKED"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    PAST_DATE = "PAST_DATE"
    NO_ACTIVE_PLAN = "NO_ACTIVE_PLAN"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    NO_CREDITS_AVAILABLE = "NO_CREDITS_AVAILABLE"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    OUTSIDE_BOOKING_WINDOW = "OUTSIDE_BOOKING_WINDOW"
    TEACHER_UNAVAILABLE = "TEACHER_UNAVAILABLE"
    HORSE_UNAVAILABLE = "HORSE_UNAVAILABLE"
    HORSE_NOT_FOUND = "HORSE_NOT_FOUND"
    HORSE_NOT_ACTIVE = "HORSE_NOT_ACTIVE"
    DAILY_CAP_REACHED = "DAILY_CAP_REACHED"
    SELF_CONFLICT = "SELF_CONFLICT"
    COOWNER_CONFLICT = "COOWNER_CONFLICT"

    # Reschedule / cancel
    LESSON_NOT_FOUND = "LESSON_NOT_FOUND"
    LESSON_NOT_ACTIVE = "LESSON_NOT_ACTIVE"
    INSUFFICIENT_NOTICE = "INSUFFICIENT_NOTICE"

    # Recurring generation
    ROLE_NOT_ALLOWED = "ROLE_NOT_ALLOWED"
    NO_FIXED_SCHEDULE = "NO_FIXED_SCHEDULE"
    SLOT_COUNT_MISMATCH = "SLOT_COUNT_MISMATCH"
    NO_SCHOOL_HORSE = "NO_SCHOOL_HORSE"
    NO_LESSONS_CREATED = "NO_LESSONS_CREATED"
    INVALID_MONTH = "INVALID_MONTH"

    # Subscriptions, billing, proofs, payroll
    PLAN_NOT_FOUND = "PLAN_NOT_FOUND"
    PLAN_ROLE_MISMATCH = "PLAN_ROLE_MISMATCH"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    INVOICE_ALREADY_PAID = "INVOICE_ALREADY_PAID"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    PROOF_NOT_FOUND = "PROOF_NOT_FOUND"
    PROOF_ALREADY_REVIEWED = "PROOF_ALREADY_REVIEWED"
    TEACHER_NOT_FOUND = "TEACHER_NOT_FOUND"

    STORE_ERROR = "STORE_ERROR"
