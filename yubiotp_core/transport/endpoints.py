"""
Endpoint Rotation
=================
Round-robin failover cursor shared by all verification calls.
"""

import threading
from typing import Sequence, Tuple
import structlog

logger = structlog.get_logger(__name__)


class EndpointSet:
    """
    Ordered service URLs with a shared current-index cursor.

    The cursor is process-wide state: concurrent calls observe and
    advance the same index. The lock is held only for the read or
    increment, never across a network call.
    """

    def __init__(self, endpoints: Sequence[str]):
        if not endpoints:
            raise ValueError("endpoints list is empty")
        self._endpoints: Tuple[str, ...] = tuple(endpoints)
        self._index = 0
        self._lock = threading.Lock()

    @property
    def endpoints(self) -> Tuple[str, ...]:
        return self._endpoints

    @property
    def index(self) -> int:
        with self._lock:
            return self._index

    def current(self) -> str:
        """Endpoint under the cursor."""
        with self._lock:
            return self._endpoints[self._index]

    def rotate(self) -> str:
        """Advance the cursor by one, wrapping around, and return the new endpoint."""
        with self._lock:
            self._index = (self._index + 1) % len(self._endpoints)
            endpoint = self._endpoints[self._index]
        logger.info("Rotated validation endpoint", endpoint=endpoint)
        return endpoint

    def __len__(self) -> int:
        return len(self._endpoints)
