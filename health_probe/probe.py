"""
Health Probe - Liveness Checks.

============================================================
RESPONSIBILITY
============================================================
Performs bounded-time liveness checks against service URLs and
classifies each outcome as healthy or unhealthy.

============================================================
POLICY
============================================================
- 2xx response within the timeout -> healthy, measured
  response time, uptime 100
- timeout, transport error, non-2xx or any other failure ->
  unhealthy, response time 0, uptime 0
- probe() never raises; only cancellation of the calling task
  propagates
- the request is abandoned at the timeout, and the client
  releases its connection on every exit path

============================================================
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from core.clock import ClockProtocol, resolve_clock
from core.constants import HEALTHY_UPTIME, UNHEALTHY_UPTIME
from core.exceptions import ProbeTimeoutError, ValidationError

from .client import AiohttpClient, HttpClientProtocol
from .config import ProbeConfig, get_config
from .models import HealthCheckResult, HealthStatus, HttpResponse, ProbeEndpoint


logger = logging.getLogger(__name__)


def build_endpoints(
    frontend_url: Optional[str],
    backend_url: Optional[str],
    backend_health_path: str,
) -> List[ProbeEndpoint]:
    """
    Build the probe targets for a deployment.

    The frontend is probed at its own URL, the backend at its URL
    plus the health path. Services without a URL are skipped.
    """
    endpoints: List[ProbeEndpoint] = []
    if frontend_url:
        endpoints.append(ProbeEndpoint(service="frontend", url=frontend_url))
    if backend_url:
        endpoints.append(
            ProbeEndpoint(service="backend", url=backend_url.rstrip("/") + backend_health_path)
        )
    return endpoints


class HealthProbe:
    """
    Bounded-timeout liveness prober.

    ============================================================
    USAGE
    ============================================================

    ```python
    async with AiohttpClient() as client:
        probe = HealthProbe(client=client)
        result = await probe.probe(ProbeEndpoint("frontend", url))
    ```

    ============================================================
    """

    def __init__(
        self,
        client: Optional[HttpClientProtocol] = None,
        config: Optional[ProbeConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._config = config or get_config()
        self._client = client or AiohttpClient(user_agent=self._config.user_agent)
        self._clock = resolve_clock(clock)

    @property
    def config(self) -> ProbeConfig:
        return self._config

    async def close(self) -> None:
        await self._client.close()

    def endpoints_for(
        self,
        frontend_url: Optional[str],
        backend_url: Optional[str],
    ) -> List[ProbeEndpoint]:
        return build_endpoints(frontend_url, backend_url, self._config.backend_health_path)

    async def probe(
        self,
        endpoint: ProbeEndpoint,
        timeout_ms: Optional[int] = None,
    ) -> HealthCheckResult:
        """
        Probe one endpoint.

        Args:
            endpoint: Service label and URL
            timeout_ms: Overrides the configured timeout

        Returns:
            HealthCheckResult; never raises for probe failures

        Raises:
            ValidationError: timeout_ms is not a positive integer
        """
        timeout_ms = self._resolve_timeout(timeout_ms)

        try:
            response = await self._timed_get(endpoint.url, timeout_ms)
        except ProbeTimeoutError as e:
            logger.warning(f"[{endpoint.service}] {e.message}")
            return self._unhealthy(endpoint)
        except Exception as e:
            logger.warning(
                f"[{endpoint.service}] Probe of {endpoint.url} failed: "
                f"{type(e).__name__}: {e}"
            )
            return self._unhealthy(endpoint)

        if not response.is_success:
            logger.warning(
                f"[{endpoint.service}] Probe of {endpoint.url} returned HTTP {response.status}"
            )
            return self._unhealthy(endpoint)

        return HealthCheckResult(
            service=endpoint.service,
            status=HealthStatus.HEALTHY,
            response_time_ms=int(round(response.elapsed_ms)),
            last_check=self._clock.now(),
            uptime=HEALTHY_UPTIME,
        )

    async def probe_all(
        self,
        endpoints: Sequence[ProbeEndpoint],
        timeout_ms: Optional[int] = None,
    ) -> List[HealthCheckResult]:
        """Probe endpoints concurrently; results follow endpoint order."""
        timeout_ms = self._resolve_timeout(timeout_ms)
        if not endpoints:
            return []
        return list(
            await asyncio.gather(*(self.probe(e, timeout_ms) for e in endpoints))
        )

    def _resolve_timeout(self, timeout_ms: Optional[int]) -> int:
        if timeout_ms is None:
            return self._config.timeout_ms
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
            raise ValidationError(
                "timeout_ms must be a positive integer",
                field_name="timeout_ms",
                value=timeout_ms,
            )
        return timeout_ms

    async def _timed_get(self, url: str, timeout_ms: int) -> HttpResponse:
        timeout_seconds = timeout_ms / 1000
        try:
            return await asyncio.wait_for(
                self._client.get(url, timeout_seconds),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProbeTimeoutError(url, timeout_ms) from e

    def _unhealthy(self, endpoint: ProbeEndpoint) -> HealthCheckResult:
        return HealthCheckResult(
            service=endpoint.service,
            status=HealthStatus.UNHEALTHY,
            response_time_ms=0,
            last_check=self._clock.now(),
            uptime=UNHEALTHY_UPTIME,
        )
