"""
Tests for DeploymentManager.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import DeploymentNotFoundError, ValidationError
from deployments import DeploymentManager, DeploymentStateMachine, Environment, OverallStatus
from health_probe import HealthCheckResult, HealthProbe, HealthStatus, ProbeEndpoint
from metrics_store import MetricsConfig, MetricStore

from .conftest import NOW


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def metric_store(clock):
    return MetricStore(config=MetricsConfig(), clock=clock)


@pytest.fixture
def probe(clock):
    """HealthProbe double that reports every endpoint healthy."""
    mock = MagicMock(spec=HealthProbe)
    mock.endpoints_for.side_effect = lambda f, b: [
        ProbeEndpoint(service, url)
        for service, url in (("frontend", f), ("backend", b and b + "/health"))
        if url
    ]
    mock.probe_all = AsyncMock(
        side_effect=lambda endpoints: [
            HealthCheckResult(
                service=e.service,
                status=HealthStatus.HEALTHY,
                response_time_ms=5,
                last_check=clock.now(),
                uptime=100.0,
            )
            for e in endpoints
        ]
    )
    return mock


@pytest.fixture
def manager(metric_store, probe, config, clock):
    return DeploymentManager(metric_store=metric_store, probe=probe, config=config, clock=clock)


# ============================================================
# LIFECYCLE
# ============================================================

class TestCreateDeployment:
    """Tests for create_deployment."""

    def test_creates_pending_deployment_with_log(self, manager):
        deployment = manager.create_deployment("user-1", "shop", "production")

        assert len(deployment.deployment_id) == 32
        assert deployment.info.environment == Environment.PRODUCTION
        assert deployment.info.created_at == NOW
        assert deployment.overall_status == OverallStatus.PENDING
        assert [(e.message, e.service) for e in deployment.logs] == [
            ("Deployment created", "system")
        ]
        assert deployment.deployment_id in manager

    def test_ids_are_unique(self, manager):
        ids = {manager.create_deployment("u", f"app{i}").deployment_id for i in range(20)}
        assert len(ids) == 20
        assert len(manager) == 20

    def test_default_environment(self, manager):
        assert manager.create_deployment("u", "app").info.environment == Environment.DEVELOPMENT

    @pytest.mark.parametrize(
        "owner,name,environment",
        [
            ("", "app", "staging"),
            ("u", "   ", "staging"),
            ("u", "x" * 101, "staging"),
            ("u", "app", "qa"),
        ],
    )
    def test_validation(self, manager, owner, name, environment):
        with pytest.raises(ValidationError):
            manager.create_deployment(owner, name, environment)
        assert len(manager) == 0


class TestLookup:
    """Tests for get and list_deployments."""

    def test_get_unknown(self, manager):
        with pytest.raises(DeploymentNotFoundError) as exc_info:
            manager.get("missing")
        assert exc_info.value.retired is False

    def test_list_filters_and_orders_newest_first(self, manager, clock):
        first = manager.create_deployment("alice", "one")
        clock.advance(minutes=1)
        second = manager.create_deployment("bob", "two")
        clock.advance(minutes=1)
        third = manager.create_deployment("alice", "three")
        third.update_service_status("frontend", "building")

        assert manager.list_deployments() == [third, second, first]
        assert manager.list_deployments(owner_id="alice") == [third, first]
        assert manager.list_deployments(status="building") == [third]
        assert manager.list_deployments(owner_id="bob", status=OverallStatus.BUILDING) == []

    def test_list_rejects_unknown_status(self, manager):
        with pytest.raises(ValidationError):
            manager.list_deployments(status="archived")

    def test_register_restored(self, manager, clock):
        original = manager.create_deployment("u", "app")
        snapshot = original.to_dict()
        other = DeploymentManager(metric_store=MetricStore(clock=clock), clock=clock)

        other.register(DeploymentStateMachine.restore(snapshot, clock=clock))

        assert other.get(original.deployment_id).info.name == "app"
        with pytest.raises(ValidationError):
            other.register(DeploymentStateMachine.restore(snapshot, clock=clock))


class TestDeleteDeployment:
    """Tests for cascade delete."""

    def test_delete_cascades_metrics(self, manager, metric_store):
        deployment = manager.create_deployment("u", "app")
        keep = manager.create_deployment("u", "other")
        metric_store.record(deployment.deployment_id, "latency", 5, "ms")
        metric_store.record(deployment.deployment_id, "cpu_usage", 50, "percent")
        metric_store.record(keep.deployment_id, "latency", 7, "ms")

        removed = manager.delete_deployment(deployment.deployment_id)

        assert removed == 2
        assert deployment.deployment_id not in manager
        assert metric_store.query(deployment.deployment_id) == []
        assert metric_store.count(keep.deployment_id) == 1

    def test_deleted_id_is_retired(self, manager, metric_store):
        deployment = manager.create_deployment("u", "app")
        manager.delete_deployment(deployment.deployment_id)

        with pytest.raises(DeploymentNotFoundError) as exc_info:
            manager.get(deployment.deployment_id)
        assert exc_info.value.retired is True

        with pytest.raises(DeploymentNotFoundError):
            metric_store.record(deployment.deployment_id, "latency", 1, "ms")

        with pytest.raises(DeploymentNotFoundError):
            manager.register(deployment)

    def test_delete_unknown(self, manager):
        with pytest.raises(DeploymentNotFoundError):
            manager.delete_deployment("missing")


# ============================================================
# HEALTH CHECKS
# ============================================================

class TestRunHealthCheck:
    """Tests for run_health_check."""

    @pytest.mark.asyncio
    async def test_probes_frontend_and_backend(self, manager, probe, clock):
        deployment = manager.create_deployment("u", "app")
        deployment.update_service_status("frontend", "deployed", url="http://f.example")
        deployment.update_service_status("backend", "deployed", url="http://b.example")
        clock.advance(seconds=30)

        results = await manager.run_health_check(deployment.deployment_id)

        probe.endpoints_for.assert_called_once_with("http://f.example", "http://b.example")
        assert [r.service for r in results] == ["frontend", "backend"]
        assert deployment.health_checks == tuple(results)

        last = deployment.logs[-1]
        assert last.message == "Health check completed"
        assert last.service == "system"
        assert last.metadata == {"checked": 2, "healthy": 2}
        assert last.timestamp == NOW + timedelta(seconds=30)

    @pytest.mark.asyncio
    async def test_without_urls_records_empty_results(self, manager):
        deployment = manager.create_deployment("u", "app")

        results = await manager.run_health_check(deployment.deployment_id)

        assert results == []
        assert deployment.health_checks == ()
        assert deployment.overall_status == OverallStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_deployment(self, manager):
        with pytest.raises(DeploymentNotFoundError):
            await manager.run_health_check("missing")


# ============================================================
# RESOURCE RELEASE
# ============================================================

class TestClose:
    """Tests for close() and async context management."""

    @pytest.mark.asyncio
    async def test_closes_probe_it_created(self, metric_store, config, clock, monkeypatch):
        created = MagicMock(spec=HealthProbe)
        created.close = AsyncMock()
        monkeypatch.setattr("deployments.manager.HealthProbe", lambda clock: created)

        manager = DeploymentManager(metric_store=metric_store, config=config, clock=clock)
        assert manager.probe is created

        await manager.close()

        created.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_leaves_injected_probe_open(self, manager, probe):
        probe.close = AsyncMock()

        await manager.close()

        probe.close.assert_not_awaited()
        assert manager.probe is probe

    @pytest.mark.asyncio
    async def test_close_without_probe_is_noop(self, metric_store, config, clock):
        manager = DeploymentManager(metric_store=metric_store, config=config, clock=clock)

        await manager.close()
        await manager.close()

    @pytest.mark.asyncio
    async def test_async_context_manager(self, metric_store, config, clock, monkeypatch):
        created = MagicMock(spec=HealthProbe)
        created.close = AsyncMock()
        created.endpoints_for.return_value = []
        created.probe_all = AsyncMock(return_value=[])
        monkeypatch.setattr("deployments.manager.HealthProbe", lambda clock: created)

        async with DeploymentManager(
            metric_store=metric_store, config=config, clock=clock
        ) as manager:
            deployment = manager.create_deployment("u", "app")
            await manager.run_health_check(deployment.deployment_id)

        created.close.assert_awaited_once()
