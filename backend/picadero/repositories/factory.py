# backend/picadero/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from .base_repository import BaseRepository

# Avoid circular imports
if TYPE_CHECKING:
    from .horse_repository import HorseRepository
    from .invoice_repository import InvoiceRepository, PaymentProofRepository
    from .lesson_repository import LessonRepository
    from .monthly_credit_repository import MonthlyCreditRepository
    from .schedule_repository import ScheduleRepository
    from .subscription_repository import SubscriptionRepository
    from .teacher_repository import TeacherRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_base_repository(db: Session, model) -> BaseRepository:
        """Create a generic base repository for any model."""
        return BaseRepository(db, model)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_horse_repository(db: Session) -> "HorseRepository":
        from .horse_repository import HorseRepository

        return HorseRepository(db)

    @staticmethod
    def create_teacher_repository(db: Session) -> "TeacherRepository":
        from .teacher_repository import TeacherRepository

        return TeacherRepository(db)

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        """Create repository for riders' fixed weekly slots."""
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        """Create repository for lesson and conflict queries."""
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_plan_repository(db: Session) -> BaseRepository:
        """Plans need no custom queries; a plain base repository is enough."""
        from ..models.plan import Plan

        return BaseRepository(db, Plan)

    @staticmethod
    def create_subscription_repository(db: Session) -> "SubscriptionRepository":
        from .subscription_repository import SubscriptionRepository

        return SubscriptionRepository(db)

    @staticmethod
    def create_monthly_credit_repository(db: Session) -> "MonthlyCreditRepository":
        """Create repository for the per-month credit ledger."""
        from .monthly_credit_repository import MonthlyCreditRepository

        return MonthlyCreditRepository(db)

    @staticmethod
    def create_invoice_repository(db: Session) -> "InvoiceRepository":
        from .invoice_repository import InvoiceRepository

        return InvoiceRepository(db)

    @staticmethod
    def create_payment_proof_repository(db: Session) -> "PaymentProofRepository":
        from .invoice_repository import PaymentProofRepository

        return PaymentProofRepository(db)
