"""
YubiOTP Exceptions
==================
Error taxonomy for one-time password verification.
"""

from enum import Enum
from typing import Optional


class YubiOTPError(Exception):
    """Base exception for all verification errors."""
    pass


class SettingsError(YubiOTPError, ValueError):
    """Raised when authenticator settings fail validation."""
    pass


class NonceGenerationError(YubiOTPError):
    """Raised when a nonce cannot be generated."""
    pass


class SecretDecodingError(YubiOTPError):
    """Raised when the client secret is not valid base64."""
    pass


class InvalidRequestError(YubiOTPError, ValueError):
    """Raised when verification request parameters are unusable."""
    pass


class TransportError(YubiOTPError):
    """Raised when every attempt to reach the validation service failed."""

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        endpoint: Optional[str] = None,
        last_exception: Optional[BaseException] = None,
    ):
        self.attempts = attempts
        self.endpoint = endpoint
        self.last_exception = last_exception
        super().__init__(message)


class RequestCancelledError(YubiOTPError):
    """Raised when the caller's deadline expires before a reply arrives."""
    pass


class ResponseParseError(YubiOTPError):
    """Raised when the service reply cannot be decoded."""

    def __init__(self, message: str, key: Optional[str] = None, value: Optional[str] = None):
        self.key = key
        self.value = value
        super().__init__(message)


class ClientPoolError(YubiOTPError):
    """Base exception for network client pool failures."""
    pass


class PoolExhaustedError(ClientPoolError):
    """Raised when the pool has no capacity left for another client."""
    pass


class InvalidClientError(ClientPoolError):
    """Raised when the pool produced an object that cannot issue requests."""
    pass


class RequestErrorKind(str, Enum):
    """Request-level failures reported by the service status field."""
    UNKNOWN_FAILURE = "unknown_failure"
    INVALID_FORMAT = "invalid_format"
    REPLAYED = "replayed"
    BAD_SIGNATURE = "bad_signature"
    MISSING_PARAMETER = "missing_parameter"
    CLIENT_DOES_NOT_EXIST = "client_does_not_exist"
    FORBIDDEN = "forbidden"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    BACKEND_ERROR = "backend_error"


class ResponseErrorKind(str, Enum):
    """Failures detected while authenticating the service reply."""
    UNKNOWN_FAILURE = "unknown_failure"
    BAD_SIGNATURE = "bad_signature"


REQUEST_ERROR_MESSAGES = {
    RequestErrorKind.UNKNOWN_FAILURE: "unknown failure",
    RequestErrorKind.INVALID_FORMAT: "one time password is in invalid format",
    RequestErrorKind.REPLAYED: "one time password was already used in the past",
    RequestErrorKind.BAD_SIGNATURE: "the request signature did not match",
    RequestErrorKind.MISSING_PARAMETER: "the request lacks a parameter",
    RequestErrorKind.CLIENT_DOES_NOT_EXIST: "client does not exist",
    RequestErrorKind.FORBIDDEN: "client is not allowed to verify one time passwords",
    RequestErrorKind.DEADLINE_EXCEEDED: (
        "server could not obtain the requested number of "
        "synchronizations before the deadline"
    ),
    RequestErrorKind.BACKEND_ERROR: "server could not process the request",
}

RESPONSE_ERROR_MESSAGES = {
    ResponseErrorKind.UNKNOWN_FAILURE: "unknown response error",
    ResponseErrorKind.BAD_SIGNATURE: "bad response signature",
}


class ProtocolError(YubiOTPError):
    """Base exception for failures carried by a well-formed reply."""

    kind: Enum

    def __eq__(self, other):
        if not isinstance(other, ProtocolError):
            return NotImplemented
        return type(self) is type(other) and self.kind == other.kind

    def __hash__(self):
        return hash((type(self), self.kind))


class RequestRejectedError(ProtocolError):
    """Raised when the service rejects the verification request."""

    def __init__(self, kind: RequestErrorKind):
        self.kind = kind
        super().__init__(REQUEST_ERROR_MESSAGES[kind])


class ResponseVerificationError(ProtocolError):
    """Raised when the service reply fails authentication."""

    def __init__(self, kind: ResponseErrorKind = ResponseErrorKind.BAD_SIGNATURE):
        self.kind = kind
        super().__init__(RESPONSE_ERROR_MESSAGES[kind])
