# backend/picadero/core/config.py
import logging
import os
from pathlib import Path
from typing import FrozenSet

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


DEFAULT_PAID_STATUSES: FrozenSet[str] = frozenset({"pagado", "pagada", "aprobado", "confirmado"})


class Settings(BaseSettings):
    environment: str = Field(
        default="development",
        description="Deployment environment name",
    )
    database_url: str = Field(
        default="sqlite:///./picadero.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL (PostgreSQL in production)",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        alias="REDIS_URL",
        description="Broker/backend URL for Celery",
    )
    log_level: str = Field(default="INFO", description="Root log level")

    # Academy calendar
    academy_timezone: str = Field(
        default="America/Argentina/Buenos_Aires",
        description="Timezone used to decide what 'today' means for the academy",
    )
    payment_grace_day: int = Field(
        default=10,
        ge=1,
        le=28,
        description="Lessons on or before this day of the month do not require the month paid",
    )
    invoice_due_business_day: int = Field(
        default=10,
        ge=1,
        le=20,
        description="Invoices fall due on this business day (Mon-Fri) of the month",
    )
    min_notice_hours: int = Field(
        default=24,
        description="Minimum hours before a lesson for reschedule or cancel",
    )
    default_lesson_minutes: int = Field(
        default=60,
        description="Lesson length when a fixed slot carries no end time",
    )
    lessons_per_slot_per_month: int = Field(
        default=4,
        description="Lessons each weekly fixed slot contributes to a monthly plan",
    )
    paid_invoice_statuses_raw: str = Field(
        default=",".join(sorted(DEFAULT_PAID_STATUSES)),
        alias="PAID_INVOICE_STATUSES",
        description="Comma separated invoice estado values that count as settled",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def paid_invoice_statuses(self) -> FrozenSet[str]:
        return frozenset(
            part.strip().lower() for part in self.paid_invoice_statuses_raw.split(",") if part.strip()
        )

    def get_database_url(self) -> str:
        """Get the database URL, normalizing legacy postgres:// schemes."""
        url = self.database_url
        if url.startswith("postgres://"):
            url = "postgresql://" + url[len("postgres://") :]
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.get_database_url().startswith("sqlite")


settings = Settings()
