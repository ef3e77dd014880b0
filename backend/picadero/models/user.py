# backend/picadero/models/user.py
"""
User model.

Riders, teachers and administrators share one table; ``rol`` decides which
capabilities apply and never changes after creation. Users are disabled with
``activo = False`` rather than deleted.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from sqlalchemy.sql import func

from ..core.enums import RoleName
from ..core.ulid_helper import generate_ulid
from ..database import Base

_ROLE_VALUES = ", ".join(f"'{role.value}'" for role in RoleName)


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    nombre = Column(String(100), nullable=False)
    apellido = Column(String(100), nullable=False)
    telefono = Column(String(30), nullable=True)
    rol = Column(String(30), nullable=False, index=True)
    activo = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (CheckConstraint(f"rol IN ({_ROLE_VALUES})", name="ck_users_rol"),)

    @property
    def full_name(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} rol={self.rol}>"
