"""
ORM Base.

============================================================
COMPONENTS
============================================================
- UtcDateTime: timestamp column that always round-trips as
  an aware UTC datetime
- Base: declarative base; every `Mapped[datetime]` column is
  a UtcDateTime

SQLite keeps no zone information, so values are converted to
UTC before binding and tagged as UTC again when read back.
Range filters on timestamps therefore compare like with like
whatever offset the caller passes in.

============================================================
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from core.clock import ensure_utc


class UtcDateTime(TypeDecorator):
    """DateTime stored and returned in UTC."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)


class Base(DeclarativeBase):
    """Declarative base for the deployments and metric_samples tables."""

    type_annotation_map = {
        datetime: UtcDateTime(),
    }
