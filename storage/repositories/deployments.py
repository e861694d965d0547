"""
Deployment Repository.

============================================================
SCOPE
============================================================
Persists DeploymentStateMachine snapshots. Deleting a
deployment removes its metric samples in the same transaction.

============================================================
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete, desc, select

from core.clock import ClockProtocol
from deployments.config import DeploymentConfig
from deployments.state_machine import DeploymentStateMachine
from storage.models.deployments import DeploymentRecord
from storage.models.metrics import MetricSampleRecord
from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import DeploymentRecordNotFoundError


class DeploymentRepository(BaseRepository[DeploymentRecord]):
    """Repository for deployment snapshots."""

    model = DeploymentRecord

    def save(self, machine: DeploymentStateMachine) -> DeploymentRecord:
        """
        Insert or update the snapshot of a deployment.

        Args:
            machine: Deployment to persist

        Returns:
            The persisted record

        Raises:
            DuplicateRecordError: A concurrent writer inserted the same id first
        """
        snapshot = machine.to_dict()
        record = self._get(machine.deployment_id)

        if record is None:
            record = DeploymentRecord(
                deployment_id=snapshot["deployment_id"],
                owner_id=snapshot["owner_id"],
                name=snapshot["name"],
                environment=snapshot["environment"],
                created_at=machine.info.created_at,
                status=snapshot["overall_status"],
                services=snapshot["services"],
                logs=snapshot["logs"],
                health_checks=snapshot["health_checks"],
            )
            self._add_all([record], key="deployment_id", value=machine.deployment_id)
            self._logger.info(f"Deployment saved: {machine.deployment_id}")
            return record

        record.name = snapshot["name"]
        record.status = snapshot["overall_status"]
        record.services = snapshot["services"]
        record.logs = snapshot["logs"]
        record.health_checks = snapshot["health_checks"]
        self._flush("save", deployment_id=machine.deployment_id)

        self._logger.debug(f"Deployment updated: {machine.deployment_id}")
        return record

    def load(
        self,
        deployment_id: str,
        config: Optional[DeploymentConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> DeploymentStateMachine:
        """
        Rebuild a deployment from its stored snapshot.

        Raises:
            DeploymentRecordNotFoundError: If no such deployment is stored
        """
        record = self._get(deployment_id)
        if record is None:
            raise DeploymentRecordNotFoundError(deployment_id)
        return DeploymentStateMachine.restore(
            self._to_snapshot(record), config=config, clock=clock
        )

    def load_all(
        self,
        owner_id: Optional[str] = None,
        config: Optional[DeploymentConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> List[DeploymentStateMachine]:
        """Load stored deployments, newest first."""
        stmt = select(DeploymentRecord).order_by(desc(DeploymentRecord.created_at))
        if owner_id is not None:
            stmt = stmt.where(DeploymentRecord.owner_id == owner_id)
        return [
            DeploymentStateMachine.restore(self._to_snapshot(r), config=config, clock=clock)
            for r in self._select(stmt)
        ]

    def delete(self, deployment_id: str) -> int:
        """
        Delete a deployment and its metric samples.

        Returns:
            Number of metric samples removed

        Raises:
            DeploymentRecordNotFoundError: If no such deployment is stored
        """
        if self._get(deployment_id) is None:
            raise DeploymentRecordNotFoundError(deployment_id, operation="delete")

        removed = self._delete(
            delete(MetricSampleRecord).where(
                MetricSampleRecord.deployment_id == deployment_id
            ),
            "delete_metrics",
        )
        self._delete(
            delete(DeploymentRecord).where(DeploymentRecord.deployment_id == deployment_id),
            "delete",
        )

        self._logger.info(f"Deployment deleted: {deployment_id} ({removed} metric samples)")
        return removed

    def count(self) -> int:
        return self._count()

    @staticmethod
    def _to_snapshot(record: DeploymentRecord) -> Dict[str, Any]:
        return {
            "deployment_id": record.deployment_id,
            "owner_id": record.owner_id,
            "name": record.name,
            "environment": record.environment,
            "created_at": record.created_at.isoformat(),
            "overall_status": record.status,
            "services": record.services or {},
            "logs": record.logs or [],
            "health_checks": record.health_checks or [],
        }
