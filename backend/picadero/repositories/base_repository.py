# backend/picadero/repositories/base_repository.py
"""
Base Repository Pattern for the Picadero backend

Provides the foundation for all repository classes with:
- Common CRUD operations
- Type safety with generics
- Dialect-aware insert-or-ignore for idempotent rows
- Store-side atomic counter updates

Repositories never commit. Transaction boundaries belong to services.
"""

import logging
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import insert, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException
from ..core.ulid_helper import generate_ulid
from ..database.session_utils import get_dialect_name

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return get_dialect_name(self.db)

    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def refresh(self, instance: T) -> None:
        """Refresh an instance from the database."""
        self.db.refresh(instance)

    def create(self, **kwargs) -> T:
        """
        Create a new entity.

        Note: Does NOT commit - transaction management is handled by service layer.
        """
        try:
            entity = self.model(**kwargs)
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except IntegrityError as exc:
            self.logger.warning("Integrity error creating %s: %s", self.model.__name__, exc)
            self.db.rollback()
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}")

    def update(self, id: str, **kwargs) -> Optional[T]:
        """
        Update an existing entity.

        Only updates provided fields, preserves others.
        """
        try:
            entity = self.get_by_id(id)
            if not entity:
                return None

            for key, value in kwargs.items():
                if hasattr(entity, key):
                    setattr(entity, key, value)

            self.db.flush()
            return entity
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating {self.model.__name__} {id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to update {self.model.__name__}: {str(e)}")

    def find_one_by(self, **kwargs) -> Optional[T]:
        """Find the first entity matching exact-match criteria."""
        try:
            return self.db.query(self.model).filter_by(**kwargs).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding one by criteria: {str(e)}")
            raise RepositoryException(f"Failed to find record: {str(e)}")

    def insert_ignoring_conflict(self, values: Dict[str, Any], conflict_columns: Sequence[str]) -> bool:
        """
        Insert a row unless one already exists for ``conflict_columns``.

        Uses ON CONFLICT DO NOTHING on PostgreSQL and INSERT OR IGNORE on SQLite
        so concurrent creators converge on a single row.

        Returns:
            True when this call inserted the row
        """
        row = dict(values)
        row.setdefault("id", generate_ulid())
        try:
            if self.dialect_name == "postgresql":
                stmt = (
                    pg_insert(self.model)
                    .values(**row)
                    .on_conflict_do_nothing(index_elements=list(conflict_columns))
                )
            else:
                stmt = insert(self.model).values(**row)
                if self.dialect_name == "sqlite":
                    stmt = stmt.prefix_with("OR IGNORE")
            result = self.db.execute(stmt)
            return bool(getattr(result, "rowcount", 0))
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to insert {self.model.__name__}: {str(e)}")

    def adjust_counter(self, id: str, column: str, delta: int, floor: int = 0) -> bool:
        """
        Atomically add ``delta`` to an integer column of one row.

        Decrements never take the column below ``floor``. Returns False when
        no row was changed (missing row or already at the floor).
        """
        col = getattr(self.model, column)
        stmt = update(self.model).where(self.model.id == id)
        if delta < 0:
            stmt = stmt.where(col + delta >= floor)
        stmt = stmt.values({column: col + delta}).execution_options(synchronize_session=False)
        try:
            result = self.db.execute(stmt)
            changed = bool(result.rowcount)
            if changed:
                self._expire_row(id)
            return changed
        except SQLAlchemyError as e:
            self.logger.error(f"Error adjusting {self.model.__name__}.{column}: {str(e)}")
            raise RepositoryException(f"Failed to update counter: {str(e)}")

    # Protected helper methods for use by subclasses

    def _expire_row(self, id: str) -> None:
        entity = self.db.identity_map.get(self.db.identity_key(self.model, id))
        if entity is not None:
            self.db.expire(entity)

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")

    def _execute_scalar(self, query: Query) -> Any:
        """Execute scalar query with error handling."""
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Scalar query error: {str(e)}")
            raise RepositoryException(f"Scalar query failed: {str(e)}")
