"""
Deployments - Manager.

============================================================
RESPONSIBILITY
============================================================
Registry of live deployments and the entry point used by an
external scheduler.

- Creates deployments with fresh, never-reused ids
- Deletes deployments and cascades to their metric samples
- Runs health checks outside any deployment lock and applies
  the results once the probes complete

============================================================
"""

import logging
import threading
import uuid
from typing import Dict, List, Optional, Set, Union

from core.clock import ClockProtocol, resolve_clock
from core.exceptions import DeploymentNotFoundError, ValidationError
from health_probe.models import HealthCheckResult
from health_probe.probe import HealthProbe
from metrics_store.store import MetricStore

from .config import DeploymentConfig, get_config
from .models import DeploymentInfo
from .state_machine import DeploymentStateMachine
from .types import Environment, LogLevel, OverallStatus, ServiceName


logger = logging.getLogger(__name__)


MAX_NAME_LENGTH = 100


class DeploymentManager:
    """
    In-memory registry of deployments.

    ============================================================
    USAGE
    ============================================================

    ```python
    manager = DeploymentManager(metric_store=MetricStore())
    deployment = manager.create_deployment("user-1", "shop", "staging")
    deployment.update_service_status("frontend", "deployed", url=url)
    results = await manager.run_health_check(deployment.deployment_id)
    ```

    ============================================================
    """

    def __init__(
        self,
        metric_store: Optional[MetricStore] = None,
        probe: Optional[HealthProbe] = None,
        config: Optional[DeploymentConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._clock = resolve_clock(clock)
        self._config = config or get_config()
        self._metric_store = metric_store or MetricStore(clock=self._clock)
        self._probe = probe
        self._owns_probe = False

        self._deployments: Dict[str, DeploymentStateMachine] = {}
        # deleted ids are never reused, so entries are never dropped
        self._retired: Set[str] = set()
        self._lock = threading.RLock()

    @property
    def metric_store(self) -> MetricStore:
        return self._metric_store

    @property
    def probe(self) -> HealthProbe:
        if self._probe is None:
            self._probe = HealthProbe(clock=self._clock)
            self._owns_probe = True
        return self._probe

    async def close(self) -> None:
        """Close the health probe if this manager created it."""
        if self._owns_probe and self._probe is not None:
            await self._probe.close()
            self._probe = None
            self._owns_probe = False
            logger.debug("Deployment manager probe closed")

    async def __aenter__(self) -> "DeploymentManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._deployments)

    def __contains__(self, deployment_id: object) -> bool:
        with self._lock:
            return deployment_id in self._deployments

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------

    def create_deployment(
        self,
        owner_id: str,
        name: str,
        environment: Union[Environment, str] = Environment.DEVELOPMENT,
    ) -> DeploymentStateMachine:
        """
        Create and register a new deployment.

        Raises:
            ValidationError: Blank owner, blank or overlong name,
                unknown environment
        """
        if not owner_id:
            raise ValidationError("owner_id is required", field_name="owner_id")

        name = (name or "").strip()
        if not name or len(name) > MAX_NAME_LENGTH:
            raise ValidationError(
                f"name must be 1-{MAX_NAME_LENGTH} characters",
                field_name="name",
                value=name,
            )

        try:
            env = Environment(environment)
        except ValueError:
            raise ValidationError(
                f"Invalid environment '{environment}'",
                field_name="environment",
                value=environment,
                allowed=[e.value for e in Environment],
            ) from None

        info = DeploymentInfo(
            deployment_id=uuid.uuid4().hex,
            owner_id=owner_id,
            name=name,
            environment=env,
            created_at=self._clock.now(),
        )
        machine = DeploymentStateMachine(info, config=self._config, clock=self._clock)
        machine.append_log(LogLevel.INFO, "Deployment created", service="system")

        with self._lock:
            self._deployments[info.deployment_id] = machine

        logger.info(
            f"Deployment created: {info.deployment_id} ({name}, {env.value}, owner={owner_id})"
        )
        return machine

    def register(self, machine: DeploymentStateMachine) -> None:
        """Register a restored deployment."""
        deployment_id = machine.deployment_id
        with self._lock:
            if deployment_id in self._retired:
                raise DeploymentNotFoundError(deployment_id, retired=True)
            if deployment_id in self._deployments:
                raise ValidationError(
                    f"Deployment {deployment_id} is already registered",
                    field_name="deployment_id",
                    value=deployment_id,
                )
            self._deployments[deployment_id] = machine
        logger.debug(f"Deployment registered: {deployment_id}")

    def get(self, deployment_id: str) -> DeploymentStateMachine:
        with self._lock:
            machine = self._deployments.get(deployment_id)
            if machine is None:
                raise DeploymentNotFoundError(
                    deployment_id, retired=deployment_id in self._retired
                )
            return machine

    def list_deployments(
        self,
        owner_id: Optional[str] = None,
        status: Optional[Union[OverallStatus, str]] = None,
    ) -> List[DeploymentStateMachine]:
        """List deployments, newest first, optionally filtered."""
        wanted = None
        if status is not None:
            try:
                wanted = OverallStatus(status)
            except ValueError:
                raise ValidationError(
                    f"Invalid status '{status}'",
                    field_name="status",
                    value=status,
                    allowed=[s.value for s in OverallStatus],
                ) from None

        with self._lock:
            machines = list(self._deployments.values())

        if owner_id is not None:
            machines = [m for m in machines if m.info.owner_id == owner_id]
        if wanted is not None:
            machines = [m for m in machines if m.overall_status == wanted]

        return sorted(machines, key=lambda m: m.info.created_at, reverse=True)

    def delete_deployment(self, deployment_id: str) -> int:
        """
        Delete a deployment and all of its metric samples.

        Returns:
            Number of metric samples removed
        """
        with self._lock:
            if deployment_id not in self._deployments:
                raise DeploymentNotFoundError(
                    deployment_id, retired=deployment_id in self._retired
                )
            del self._deployments[deployment_id]
            self._retired.add(deployment_id)
            removed = self._metric_store.delete_all(deployment_id)

        logger.info(f"Deployment deleted: {deployment_id} ({removed} metric samples)")
        return removed

    # --------------------------------------------------------
    # Health checks
    # --------------------------------------------------------

    async def run_health_check(self, deployment_id: str) -> List[HealthCheckResult]:
        """
        Probe the frontend and backend of a deployment.

        The probes run without holding the deployment lock; results
        are applied afterwards in one step.
        """
        machine = self.get(deployment_id)
        endpoints = self.probe.endpoints_for(
            machine.service(ServiceName.FRONTEND).url,
            machine.service(ServiceName.BACKEND).url,
        )

        results = await self.probe.probe_all(endpoints)

        machine.record_health_check(results)
        healthy = sum(1 for r in results if r.is_healthy)
        machine.append_log(
            LogLevel.INFO,
            "Health check completed",
            service="system",
            metadata={"checked": len(results), "healthy": healthy},
        )
        logger.info(
            f"Health check for {deployment_id}: {healthy}/{len(results)} healthy"
        )
        return results
