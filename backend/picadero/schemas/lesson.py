from datetime import date, time
from typing import List, Optional

from pydantic import ConfigDict

from .base import StandardizedModel


class LessonRead(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    profesor_id: str
    caballo_id: str
    fecha: date
    hora_inicio: time
    hora_fin: time
    estado: str
    es_extra: bool = False
    es_reagendada: bool = False
    clase_original_id: Optional[str] = None
    notas: Optional[str] = None


class RescheduleResult(StandardizedModel):
    original: LessonRead
    lesson: LessonRead


class CreditBalance(StandardizedModel):
    """Class credits of a subscription for one bucket (global or a month)."""

    included: int
    used: int
    available: int


class GenerationReport(StandardizedModel):
    success: bool
    user_id: str
    year: int
    month: int
    classes_created: int = 0
    lessons: List[LessonRead] = []
    skipped: List[str] = []


class AvailableTeacher(StandardizedModel):
    id: str
    name: str
    especialidad: Optional[str] = None


class AvailableHorse(StandardizedModel):
    id: str
    nombre: str
    tipo: str
    lessons_today: int
    limite_clases_dia: int


class LessonDetail(LessonRead):
    rider_name: str
    teacher_name: str
    horse_name: str


class HorseOccupancy(StandardizedModel):
    id: str
    nombre: str
    estado: str
    scheduled: int
    limite_clases_dia: int
    capacity: int
    usage_pct: float


class TeacherOccupancy(StandardizedModel):
    id: str
    name: str
    scheduled: int
