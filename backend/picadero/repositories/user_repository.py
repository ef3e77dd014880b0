# backend/picadero/repositories/user_repository.py
import logging
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_active_by_roles(self, roles: Iterable[str]) -> List[User]:
        values = [getattr(role, "value", role) for role in roles]
        query = (
            self.db.query(User)
            .filter(User.rol.in_(values), User.activo.is_(True))
            .order_by(User.apellido, User.nombre, User.id)
        )
        return self._execute_query(query)
