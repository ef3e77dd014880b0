"""
Database models for the Picadero academy backend.

The models are organized by functionality:
- Users (riders, teachers, administrators)
- Horses and teachers
- Plans, subscriptions and the monthly credit ledger
- Fixed weekly schedules
- Lessons
- Invoices and payment proofs
"""

from .horse import Horse
from .invoice import Invoice, PaymentProof
from .lesson import Lesson
from .plan import Plan
from .schedule import FixedScheduleSlot
from .subscription import MonthlyCreditRecord, Subscription
from .teacher import Teacher, TeacherWorkingHours
from .user import User

__all__ = [
    "FixedScheduleSlot",
    "Horse",
    "Invoice",
    "Lesson",
    "MonthlyCreditRecord",
    "PaymentProof",
    "Plan",
    "Subscription",
    "Teacher",
    "TeacherWorkingHours",
    "User",
]
