from .billing import (
    BillingRunReport,
    InvoiceHistoryItem,
    InvoiceRead,
    PaymentProofRead,
    ReconciliationReport,
    UserPaymentProof,
)
from .lesson import (
    AvailableHorse,
    AvailableTeacher,
    CreditBalance,
    GenerationReport,
    HorseOccupancy,
    LessonDetail,
    LessonRead,
    RescheduleResult,
    TeacherOccupancy,
)
from .payroll import PayrollBucket, PayrollRun, PayrollSummary
from .results import OperationResult
from .subscription import SubscriptionView

__all__ = [
    "AvailableHorse",
    "AvailableTeacher",
    "BillingRunReport",
    "CreditBalance",
    "GenerationReport",
    "HorseOccupancy",
    "InvoiceHistoryItem",
    "InvoiceRead",
    "LessonDetail",
    "LessonRead",
    "OperationResult",
    "PaymentProofRead",
    "PayrollBucket",
    "PayrollRun",
    "PayrollSummary",
    "ReconciliationReport",
    "RescheduleResult",
    "SubscriptionView",
    "TeacherOccupancy",
    "UserPaymentProof",
]
