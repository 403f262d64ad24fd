"""
YubiOTP Core Library
====================
Verification of YubiKey one-time passwords against the YubiCloud
validation service.
"""

__version__ = "0.1.0"

# Client
from yubiotp_core.authenticator import Authenticator

# Configuration
from yubiotp_core.config import (
    AuthenticatorSettings,
    RetryPolicy,
    DEFAULT_ENDPOINTS,
)

# Nonces
from yubiotp_core.nonce import (
    Nonce,
    NonceGenerator,
    NonceGeneratorFunc,
    TimestampedNonceGenerator,
    generate_nonce,
)

# Request / Response
from yubiotp_core.request import VerificationRequest, SignedQuery, sign_request
from yubiotp_core.response import (
    ServiceResponse,
    ResponseStatus,
    parse_response,
    verify_response,
)

# Transport
from yubiotp_core.transport import (
    EndpointSet,
    FailoverTransport,
    ClientPool,
    HTTPXClientPool,
)

# Errors
from yubiotp_core.exceptions import (
    YubiOTPError,
    SettingsError,
    NonceGenerationError,
    SecretDecodingError,
    InvalidRequestError,
    TransportError,
    RequestCancelledError,
    ResponseParseError,
    ClientPoolError,
    PoolExhaustedError,
    InvalidClientError,
    ProtocolError,
    RequestRejectedError,
    ResponseVerificationError,
    RequestErrorKind,
    ResponseErrorKind,
)

# Logging
from yubiotp_core.log import setup_logging

__all__ = [
    # Client
    "Authenticator",
    # Configuration
    "AuthenticatorSettings",
    "RetryPolicy",
    "DEFAULT_ENDPOINTS",
    # Nonces
    "Nonce",
    "NonceGenerator",
    "NonceGeneratorFunc",
    "TimestampedNonceGenerator",
    "generate_nonce",
    # Request / Response
    "VerificationRequest",
    "SignedQuery",
    "sign_request",
    "ServiceResponse",
    "ResponseStatus",
    "parse_response",
    "verify_response",
    # Transport
    "EndpointSet",
    "FailoverTransport",
    "ClientPool",
    "HTTPXClientPool",
    # Errors
    "YubiOTPError",
    "SettingsError",
    "NonceGenerationError",
    "SecretDecodingError",
    "InvalidRequestError",
    "TransportError",
    "RequestCancelledError",
    "ResponseParseError",
    "ClientPoolError",
    "PoolExhaustedError",
    "InvalidClientError",
    "ProtocolError",
    "RequestRejectedError",
    "ResponseVerificationError",
    "RequestErrorKind",
    "ResponseErrorKind",
    # Logging
    "setup_logging",
]
