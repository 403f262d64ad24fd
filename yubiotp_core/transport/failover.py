"""
Failover Transport
==================
Sends a signed query to the validation service, rotating through
endpoints with exponential backoff on transport failures.
"""

import asyncio
from typing import Awaitable, Callable, Optional
import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from ..config import RetryPolicy
from ..exceptions import RequestCancelledError, TransportError
from .endpoints import EndpointSet
from .pool import ClientPool, PooledClient

logger = structlog.get_logger(__name__)

# Connection-level failures. HTTP status codes are never retried here;
# the reply body decides the outcome.
RETRYABLE_EXCEPTIONS = (httpx.TransportError, ConnectionError)


class FailoverTransport:
    """
    Issues verification GETs against a rotating set of endpoints.

    Example:
        transport = FailoverTransport(EndpointSet(DEFAULT_ENDPOINTS), pool, RetryPolicy())
        body = await transport.send(signed.query, deadline=loop.time() + 10)
    """

    def __init__(
        self,
        endpoints: EndpointSet,
        pool: ClientPool,
        policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.endpoints = endpoints
        self.pool = pool
        self.policy = policy
        self._sleep = sleep
        self._clock = clock

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return deadline - self._now()

    async def _backoff(self, delay: float, deadline: Optional[float]) -> None:
        remaining = self._remaining(deadline)
        if remaining is not None and remaining <= delay:
            logger.warning("Deadline expires before next attempt", delay=delay, remaining=remaining)
            raise RequestCancelledError("deadline exceeded while waiting to retry")
        await self._sleep(delay)

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.policy.delay_for(retry_state.attempt_number)

    def _log_failure(self, retry_state: RetryCallState, endpoint: str) -> None:
        logger.warning(
            "Validation endpoint unreachable, retrying",
            endpoint=endpoint,
            attempt=retry_state.attempt_number,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(retry_state.outcome.exception()),
        )

    def _retrying(
        self,
        deadline: Optional[float],
        before_sleep: Callable[[RetryCallState], None],
    ) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            stop=stop_after_attempt(self.policy.attempt_limit),
            wait=self._wait,
            sleep=lambda delay: self._backoff(delay, deadline),
            before_sleep=before_sleep,
            reraise=True,
        )

    async def _get(self, client: PooledClient, url: str, deadline: Optional[float]) -> bytes:
        remaining = self._remaining(deadline)
        if remaining is not None and remaining <= 0:
            raise RequestCancelledError("deadline exceeded before the request was sent")
        try:
            response = await asyncio.wait_for(client.get(url), timeout=remaining)
        except asyncio.TimeoutError as e:
            raise RequestCancelledError("deadline exceeded while waiting for a reply") from e
        return response.content

    async def send(self, query: str, deadline: Optional[float] = None) -> bytes:
        """
        Send a signed query and return the raw reply body.

        Args:
            query: Signed query string
            deadline: Absolute event-loop time after which the call is abandoned

        Returns:
            Reply body bytes, whatever the HTTP status code

        Raises:
            TransportError: If every attempt failed at the connection level
            RequestCancelledError: If the deadline expired
            ClientPoolError: If no network client could be acquired
        """
        client = await self.pool.acquire()
        attempts = 0
        endpoint = self.endpoints.current()
        try:
            # Reads the endpoint of the attempt that just failed.
            retrying = self._retrying(deadline, lambda state: self._log_failure(state, endpoint))
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    if attempts > 1:
                        endpoint = self.endpoints.rotate()
                    return await self._get(client, f"{endpoint}?{query}", deadline)
        except RETRYABLE_EXCEPTIONS as e:
            # The failed endpoint is not retried here, but the next call starts elsewhere.
            self.endpoints.rotate()
            logger.error(
                "All validation endpoints failed",
                attempts=attempts,
                endpoint=endpoint,
                error=str(e),
            )
            raise TransportError(
                f"network client failed after {attempts} attempts: {e}",
                attempts=attempts,
                endpoint=endpoint,
                last_exception=e,
            ) from e
        finally:
            await self.pool.release(client)
