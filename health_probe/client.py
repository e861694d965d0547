"""
Health Probe - HTTP Client.

============================================================
NETWORK CAPABILITY
============================================================

HealthProbe performs its GET requests through
HttpClientProtocol so the network can be swapped out in tests.
AiohttpClient is the production implementation: one shared
aiohttp session, a per-request ClientTimeout, and the response
released by `async with` on every exit path.

Errors are not handled here; HealthProbe classifies them.

============================================================
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from .models import HttpResponse


logger = logging.getLogger(__name__)


class HttpClientProtocol(ABC):
    """Abstract interface for the GET capability used by probes."""

    @abstractmethod
    async def get(self, url: str, timeout_seconds: float) -> HttpResponse:
        """
        Issue a GET request.

        Raises:
            Any transport error; callers treat all of them as failure.
        """
        pass

    async def close(self) -> None:
        """Release any pooled connections."""
        return None


class AiohttpClient(HttpClientProtocol):
    """
    HTTP client backed by an aiohttp ClientSession.

    An owned session is bound to the event loop that created it.
    When called from a different loop (a scheduler running each
    cycle under its own asyncio.run) the stale session is detached
    and a fresh one is created on the running loop.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Initialize client.

        Args:
            session: Existing session to reuse (not closed by this client)
            user_agent: User-Agent header for sessions this client creates
        """
        self._session = session
        self._owns_session = session is None
        self._session_loop: Optional[asyncio.AbstractEventLoop] = None
        self._user_agent = user_agent

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create an HTTP session bound to the running loop."""
        loop = asyncio.get_running_loop()

        if (
            self._owns_session
            and self._session is not None
            and not self._session.closed
            and self._session_loop is not loop
        ):
            logger.debug("Event loop changed, replacing HTTP session")
            self._discard_session()

        if self._session is None or self._session.closed:
            headers = {"User-Agent": self._user_agent} if self._user_agent else None
            self._session = aiohttp.ClientSession(headers=headers)
            self._session_loop = loop
            self._owns_session = True
        return self._session

    def _discard_session(self) -> None:
        # the owning loop is gone or elsewhere; awaiting close() here is not possible
        if self._session is not None and not self._session.closed:
            self._session.detach()
        self._session = None
        self._session_loop = None

    async def get(self, url: str, timeout_seconds: float) -> HttpResponse:
        session = await self._get_session()

        start_time = time.monotonic()
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout_seconds),
            allow_redirects=True,
        ) as response:
            await response.read()
            elapsed_ms = (time.monotonic() - start_time) * 1000

        logger.debug(f"GET {url} -> {response.status} in {elapsed_ms:.1f}ms")
        return HttpResponse(status=response.status, elapsed_ms=elapsed_ms)

    async def close(self) -> None:
        """Close the session if this client created it."""
        if not self._owns_session:
            self._session = None
            return
        if self._session is not None and not self._session.closed:
            if self._session_loop is asyncio.get_running_loop():
                await self._session.close()
            else:
                self._discard_session()
        self._session = None
        self._session_loop = None

    async def __aenter__(self) -> "AiohttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
