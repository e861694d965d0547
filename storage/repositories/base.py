"""
Base Repository.

============================================================
PURPOSE
============================================================
Plumbing shared by DeploymentRepository and
MetricSampleRepository:

- every statement runs inside _guard(), which logs the failure
  and re-raises it as a StorageError subclass
- small typed helpers for get / add / select / delete / count

The session is injected; transaction boundaries belong to the
caller (see storage.database.session_scope).

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generic, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import Delete, Select, func, select
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import (
    DuplicateRecordError,
    QueryError,
    StorageError,
    StorageUnavailableError,
)


T = TypeVar("T", bound=Base)

# PostgreSQL: "duplicate key value"; SQLite: "UNIQUE constraint failed"
_DUPLICATE_MARKERS = ("duplicate key", "unique constraint")


class BaseRepository(Generic[T]):
    """
    Base class for the repositories.

    Subclasses set `model` to their ORM class.
    """

    model: Type[T]

    def __init__(self, session: Session) -> None:
        self._session = session
        self._name = type(self).__name__
        self._logger = logging.getLogger(f"repository.{self._name}")

    @property
    def session(self) -> Session:
        return self._session

    # =========================================================
    # ERROR TRANSLATION
    # =========================================================

    @contextmanager
    def _guard(self, operation: str, **context: Any) -> Iterator[None]:
        """Run a block of statements, translating database errors."""
        try:
            yield
        except SQLAlchemyError as e:
            self._logger.error(
                f"{operation} failed on {self.model.__tablename__}: {e}",
                extra={"context": context},
            )
            raise self._translate(e, operation, context) from e

    def _translate(
        self,
        error: SQLAlchemyError,
        operation: str,
        context: Dict[str, Any],
    ) -> StorageError:
        if isinstance(error, OperationalError):
            return StorageUnavailableError(self._name, operation, cause=error)

        if isinstance(error, IntegrityError):
            text = str(error.orig).lower()
            if any(marker in text for marker in _DUPLICATE_MARKERS):
                return DuplicateRecordError(
                    self._name,
                    operation,
                    key=context.get("key", "unknown"),
                    value=context.get("value"),
                    cause=error,
                )

        return QueryError(self._name, operation, cause=error)

    # =========================================================
    # HELPERS
    # =========================================================

    def _get(self, key: Any) -> Optional[T]:
        with self._guard("get", value=key):
            return self._session.get(self.model, key)

    def _add_all(self, rows: Sequence[T], key: str, value: Optional[Any] = None) -> None:
        with self._guard("add", key=key, value=value):
            self._session.add_all(rows)
            self._session.flush()
        self._logger.debug(f"Added {len(rows)} rows to {self.model.__tablename__}")

    def _flush(self, operation: str, **context: Any) -> None:
        with self._guard(operation, **context):
            self._session.flush()

    def _select(self, stmt: Select) -> List[T]:
        with self._guard("select"):
            return list(self._session.scalars(stmt).all())

    def _delete(self, stmt: Delete, operation: str) -> int:
        """Execute a bulk delete and return the affected row count."""
        with self._guard(operation):
            result = self._session.execute(stmt)
            self._session.flush()
        return result.rowcount or 0

    def _count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        with self._guard("count"):
            return self._session.execute(stmt).scalar() or 0
