"""
YubiKey OTP Authenticator
=========================
Verifies one-time passwords against the YubiCloud validation service.

Usage:
    from yubiotp_core import Authenticator, VerificationRequest

    async with Authenticator() as authenticator:
        await authenticator.authenticate(
            VerificationRequest(one_time_password=otp, client_id=1, client_secret=secret),
            timeout=10,
        )
"""

import asyncio
import base64
import binascii
from typing import Any, Awaitable, Callable, Optional
import structlog

from .config import AuthenticatorSettings
from .exceptions import SecretDecodingError
from .request import VerificationRequest, sign_request
from .response import parse_response, verify_response
from .transport import EndpointSet, FailoverTransport, HTTPXClientPool

logger = structlog.get_logger(__name__)


class Authenticator:
    """
    Long-lived verification client.

    Safe for concurrent ``authenticate`` calls; the only shared state is
    the endpoint cursor and the client pool.

    Args:
        settings: Pre-built settings; when omitted they are built from ``options``
        sleep: Backoff sleep, replaceable in tests
        **options: Fields of ``AuthenticatorSettings``

    Raises:
        SettingsError: If the options fail validation
    """

    def __init__(
        self,
        settings: Optional[AuthenticatorSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        **options: Any,
    ):
        self.settings = settings if settings is not None else AuthenticatorSettings.create(**options)
        self._owns_pool = self.settings.client_pool is None
        self.pool = HTTPXClientPool() if self._owns_pool else self.settings.client_pool
        self.endpoints = EndpointSet(self.settings.endpoints)
        self.transport = FailoverTransport(self.endpoints, self.pool, self.settings.retry, sleep=sleep)

    async def __aenter__(self) -> "Authenticator":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the client pool if this authenticator created it."""
        if self._owns_pool:
            await self.pool.aclose()

    @property
    def current_endpoint(self) -> str:
        return self.endpoints.current()

    async def authenticate(self, request: VerificationRequest, timeout: Optional[float] = None) -> None:
        """
        Verify a one-time password.

        Only the network step is retried; once a reply body is in hand
        its verdict is final.

        Args:
            request: OTP and client credentials
            timeout: Seconds after which the call is abandoned

        Raises:
            SecretDecodingError: If the client secret is not base64
            NonceGenerationError: If no nonce could be generated
            TransportError: If no endpoint could be reached
            RequestCancelledError: If the timeout expired
            ResponseParseError: If the reply is malformed
            RequestRejectedError: If the service rejected the OTP or request
            ResponseVerificationError: If the reply signature is wrong
        """
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        try:
            secret = base64.b64decode(request.client_secret, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SecretDecodingError(f"invalid client secret: {e}") from e

        nonce = self.settings.nonce_generator.generate()
        signed = sign_request(
            request.one_time_password,
            request.client_id,
            secret,
            nonce,
            self.settings.sync_factor_param,
            self.settings.sync_time_limit_param,
        )

        body = await self.transport.send(signed.query, deadline=deadline)
        response = parse_response(body)
        verify_response(response, secret)

        logger.debug(
            "One-time password verified",
            client_id=request.client_id,
            nonce=nonce[:8],
            sync_factor=response.sync_factor,
        )
