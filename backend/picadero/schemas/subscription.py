from datetime import date
from typing import Optional

from .base import Money, StandardizedModel


class SubscriptionView(StandardizedModel):
    """A rider's active subscription with the credits left right now."""

    id: str
    plan_id: str
    plan_name: str
    plan_type: str
    precio: Money
    fecha_inicio: date
    fecha_fin: Optional[date] = None
    clases_incluidas: int
    clases_usadas: int
    clases_disponibles: int
    credit_month: Optional[int] = None
    credit_year: Optional[int] = None
