"""
Metric Sample ORM Model.

============================================================
DATA LIFECYCLE
============================================================
- Mutability: IMMUTABLE (append-only)
- Retention: 30 days by default, purged by purge_expired
- Deleted with their deployment

============================================================
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base


class MetricSampleRecord(Base):
    """One persisted metric sample."""

    __tablename__ = "metric_samples"

    sample_id: Mapped[str] = mapped_column(String(32), primary_key=True)

    deployment_id: Mapped[str] = mapped_column(String(32), nullable=False)

    type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        comment="response_time, error_rate, cpu_usage, ..."
    )

    value: Mapped[float] = mapped_column(Float, nullable=False)

    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    service: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="overall",
        comment="frontend, backend, database, overall"
    )

    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    # "metadata" is reserved on declarative classes
    extra: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    __table_args__ = (
        Index("idx_metrics_deployment_ts", "deployment_id", "timestamp"),
        Index("idx_metrics_type_ts", "type", "timestamp"),
        Index("idx_metrics_service_ts", "service", "timestamp"),
        Index("idx_metrics_ts", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<MetricSampleRecord {self.deployment_id} {self.type}={self.value}>"
