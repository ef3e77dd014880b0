from typing import List, Optional

from .base import Money, StandardizedModel


class PayrollBucket(StandardizedModel):
    """Plan revenue attributed to a teacher for one bucket (escuelita or pension)."""

    students: int = 0
    subscriptions: int = 0
    total: Money = Money("0")
    percentage: Money = Money("0")
    pay: Money = Money("0")


class PayrollSummary(StandardizedModel):
    teacher_id: str
    teacher_name: Optional[str] = None
    month: int
    year: int
    escuelita: PayrollBucket
    pension: PayrollBucket
    total_pay: Money


class PayrollRun(StandardizedModel):
    month: int
    year: int
    summaries: List[PayrollSummary] = []
    failed_teacher_ids: List[str] = []
