"""
Failover Transport
==================
Endpoint rotation, pooled network clients and retrying delivery of
signed verification queries.
"""

from .endpoints import EndpointSet
from .pool import ClientPool, PooledClient, HTTPXClientPool, default_client_factory
from .failover import FailoverTransport, RETRYABLE_EXCEPTIONS

__all__ = [
    # Endpoints
    "EndpointSet",
    # Pool
    "ClientPool",
    "PooledClient",
    "HTTPXClientPool",
    "default_client_factory",
    # Failover
    "FailoverTransport",
    "RETRYABLE_EXCEPTIONS",
]
