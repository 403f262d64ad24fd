"""
Client Pool
===========
Borrow/return pool of network clients capable of issuing a GET.
"""

import asyncio
from typing import Any, Callable, List, Optional, Protocol, runtime_checkable
import httpx
import structlog

from ..exceptions import InvalidClientError, PoolExhaustedError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(5.0, connect=3.0, read=3.0)
DEFAULT_LIMITS = httpx.Limits(max_connections=20, max_keepalive_connections=5, keepalive_expiry=60.0)


@runtime_checkable
class PooledClient(Protocol):
    """A client that issues a GET and returns a response with a readable body."""

    async def get(self, url: str) -> Any:
        ...


@runtime_checkable
class ClientPool(Protocol):
    """
    Source of request-capable clients.

    ``acquire`` returns a usable client or raises a ``ClientPoolError``.
    ``release`` always succeeds.
    """

    async def acquire(self) -> PooledClient:
        ...

    async def release(self, client: PooledClient) -> None:
        ...


def default_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=DEFAULT_TIMEOUT,
        limits=DEFAULT_LIMITS,
        headers={"User-Agent": "yubiotp-core"},
    )


class HTTPXClientPool:
    """
    Bounded pool of ``httpx.AsyncClient`` instances.

    Idle clients are reused; new ones are created on demand until
    ``max_size`` clients are in use, after which ``acquire`` raises
    ``PoolExhaustedError``. Returned clients beyond ``max_idle`` are closed.
    """

    def __init__(
        self,
        max_size: int = 64,
        max_idle: int = 8,
        factory: Callable[[], Any] = default_client_factory,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.max_idle = max_idle
        self.factory = factory
        self._idle: List[Any] = []
        self._in_use = 0
        self._closed = False
        self._lock = asyncio.Lock()

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def idle(self) -> int:
        return len(self._idle)

    async def acquire(self) -> PooledClient:
        async with self._lock:
            if self._closed:
                raise PoolExhaustedError("client pool is closed")
            if self._in_use >= self.max_size:
                raise PoolExhaustedError(f"all {self.max_size} network clients are in use")
            client = self._idle.pop() if self._idle else self.factory()
            if client is None or not isinstance(client, PooledClient):
                raise InvalidClientError("client pool produced an object that cannot issue GET requests")
            self._in_use += 1
            return client

    async def release(self, client: PooledClient) -> None:
        async with self._lock:
            self._in_use = max(self._in_use - 1, 0)
            if not self._closed and len(self._idle) < self.max_idle:
                self._idle.append(client)
                return
        await _close_quietly(client)

    async def aclose(self) -> None:
        """Close all idle clients and refuse further acquisitions."""
        async with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []
        for client in idle:
            await _close_quietly(client)


async def _close_quietly(client: Optional[Any]) -> None:
    aclose = getattr(client, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.warning("Failed to close network client", error=str(e))
