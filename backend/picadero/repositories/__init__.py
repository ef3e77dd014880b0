"""
Repository layer for the Picadero backend.

Repositories own every query; services never touch the session directly
except to delimit transactions.
"""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .horse_repository import HorseRepository
from .invoice_repository import InvoiceRepository, PaymentProofRepository
from .lesson_repository import LessonRepository
from .monthly_credit_repository import MonthlyCreditRepository
from .schedule_repository import ScheduleRepository
from .subscription_repository import SubscriptionRepository
from .teacher_repository import TeacherRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "HorseRepository",
    "InvoiceRepository",
    "LessonRepository",
    "MonthlyCreditRepository",
    "PaymentProofRepository",
    "RepositoryFactory",
    "ScheduleRepository",
    "SubscriptionRepository",
    "TeacherRepository",
    "UserRepository",
]
