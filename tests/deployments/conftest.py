"""Shared fixtures for deployments tests."""

from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from deployments import DeploymentConfig, DeploymentInfo, DeploymentStateMachine, Environment


NOW = datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return MockClock(NOW)


@pytest.fixture
def config():
    return DeploymentConfig()


@pytest.fixture
def machine(config, clock):
    info = DeploymentInfo(
        deployment_id="d" * 32,
        owner_id="user-1",
        name="shop",
        environment=Environment.STAGING,
        created_at=clock.now(),
    )
    return DeploymentStateMachine(info, config=config, clock=clock)
