"""
Metric Sample Repository.

Append-only storage for metric samples, with retention purge
and per-deployment cascade delete.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, desc, select

from metrics_store.models import MetricSample
from metrics_store.store import parse_metric_service, parse_metric_type
from metrics_store.types import MetricService, MetricType, MetricUnit
from storage.models.metrics import MetricSampleRecord
from storage.repositories.base import BaseRepository


class MetricSampleRepository(BaseRepository[MetricSampleRecord]):
    """Repository for metric samples."""

    model = MetricSampleRecord

    def add_samples(self, samples: Iterable[MetricSample]) -> int:
        """Persist samples; returns how many were written."""
        records = [
            MetricSampleRecord(
                sample_id=s.sample_id,
                deployment_id=s.deployment_id,
                type=s.type.value,
                value=s.value,
                unit=s.unit.value,
                service=s.service.value,
                timestamp=s.timestamp,
                extra=dict(s.metadata) or None,
            )
            for s in samples
        ]
        if not records:
            return 0
        self._add_all(records, key="sample_id")
        return len(records)

    def list_samples(
        self,
        deployment_id: str,
        metric_type: Optional[Any] = None,
        service: Optional[Any] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[MetricSample]:
        """
        List samples of a deployment, newest first.

        Args:
            deployment_id: Deployment identifier
            metric_type: Only this metric type
            service: Only this service
            since: Only samples at or after this instant
            limit: Maximum samples to return
        """
        stmt = (
            select(MetricSampleRecord)
            .where(MetricSampleRecord.deployment_id == deployment_id)
            .order_by(desc(MetricSampleRecord.timestamp))
        )
        if metric_type is not None:
            stmt = stmt.where(MetricSampleRecord.type == parse_metric_type(metric_type).value)
        if service is not None:
            stmt = stmt.where(MetricSampleRecord.service == parse_metric_service(service).value)
        if since is not None:
            stmt = stmt.where(MetricSampleRecord.timestamp >= since)
        if limit is not None:
            stmt = stmt.limit(limit)

        return [self._to_sample(r) for r in self._select(stmt)]

    def delete_for_deployment(self, deployment_id: str) -> int:
        removed = self._delete(
            delete(MetricSampleRecord).where(
                MetricSampleRecord.deployment_id == deployment_id
            ),
            "delete_for_deployment",
        )
        self._logger.info(f"Deleted {removed} samples of deployment {deployment_id}")
        return removed

    def purge_expired(self, cutoff: datetime) -> int:
        """Delete samples older than cutoff."""
        removed = self._delete(
            delete(MetricSampleRecord).where(MetricSampleRecord.timestamp < cutoff),
            "purge_expired",
        )
        if removed:
            self._logger.info(f"Purged {removed} samples older than {cutoff.isoformat()}")
        return removed

    def count(self, deployment_id: Optional[str] = None) -> int:
        if deployment_id is None:
            return self._count()
        return self._count(MetricSampleRecord.deployment_id == deployment_id)

    @staticmethod
    def _to_sample(record: MetricSampleRecord) -> MetricSample:
        return MetricSample(
            deployment_id=record.deployment_id,
            type=MetricType(record.type),
            value=record.value,
            unit=MetricUnit(record.unit),
            timestamp=record.timestamp,
            service=MetricService(record.service),
            metadata=dict(record.extra or {}),
            sample_id=record.sample_id,
        )
