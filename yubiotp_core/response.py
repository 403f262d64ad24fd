"""
Response Codec
==============
Parsing and authentication of validation service replies.
"""

import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Dict
import structlog

from .exceptions import (
    RequestErrorKind,
    RequestRejectedError,
    ResponseErrorKind,
    ResponseParseError,
    ResponseVerificationError,
)
from .request import compute_signature

logger = structlog.get_logger(__name__)


class ResponseStatus(str, Enum):
    """Status values returned by the validation service."""
    OK = "OK"
    BAD_OTP = "BAD_OTP"
    REPLAYED_OTP = "REPLAYED_OTP"
    REPLAYED_REQUEST = "REPLAYED_REQUEST"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    NO_SUCH_CLIENT = "NO_SUCH_CLIENT"
    OPERATION_NOT_ALLOWED = "OPERATION_NOT_ALLOWED"
    NOT_ENOUGH_ANSWERS = "NOT_ENOUGH_ANSWERS"
    BACKEND_ERROR = "BACKEND_ERROR"


STATUS_ERROR_KINDS: Dict[str, RequestErrorKind] = {
    ResponseStatus.BAD_OTP.value: RequestErrorKind.INVALID_FORMAT,
    ResponseStatus.REPLAYED_OTP.value: RequestErrorKind.REPLAYED,
    ResponseStatus.REPLAYED_REQUEST.value: RequestErrorKind.REPLAYED,
    ResponseStatus.BAD_SIGNATURE.value: RequestErrorKind.BAD_SIGNATURE,
    ResponseStatus.MISSING_PARAMETER.value: RequestErrorKind.MISSING_PARAMETER,
    ResponseStatus.NO_SUCH_CLIENT.value: RequestErrorKind.CLIENT_DOES_NOT_EXIST,
    ResponseStatus.OPERATION_NOT_ALLOWED.value: RequestErrorKind.FORBIDDEN,
    ResponseStatus.NOT_ENOUGH_ANSWERS.value: RequestErrorKind.DEADLINE_EXCEEDED,
    ResponseStatus.BACKEND_ERROR.value: RequestErrorKind.BACKEND_ERROR,
}


@dataclass
class ServiceResponse:
    """A parsed validation service reply."""
    # One-time password echoed back by the service
    received_otp: str = ""
    # Base64 (RFC 4648) HMAC-SHA1 signature over the other fields
    signature: str = ""
    # Nonce echoed back by the service
    received_nonce: str = ""
    # Token internal usage counter at the time of the touch
    session_counter: str = ""
    # Token internal session usage counter at the time of the touch
    session_use: str = ""
    status: str = ""
    # Percentage of backend servers that synchronized, 0 to 100
    sync_factor: str = ""
    # Request timestamp in UTC
    request_timestamp: str = ""
    # Token timestamp of the touch
    activation_timestamp: str = ""

    def canonical_string(self) -> str:
        """Signed fields joined as a query string in alphabetical key order."""
        return (
            f"nonce={self.received_nonce}"
            f"&otp={self.received_otp}"
            f"&sessioncounter={self.session_counter}"
            f"&sessionuse={self.session_use}"
            f"&sl={self.sync_factor}"
            f"&status={self.status}"
            f"&t={self.request_timestamp}"
            f"&timestamp={self.activation_timestamp}"
        )


# Wire key -> ServiceResponse attribute
RESPONSE_FIELDS: Dict[str, str] = {
    "h": "signature",
    "t": "request_timestamp",
    "timestamp": "activation_timestamp",
    "otp": "received_otp",
    "nonce": "received_nonce",
    "sessioncounter": "session_counter",
    "sessionuse": "session_use",
    "status": "status",
    "sl": "sync_factor",
}


def parse_response(body: bytes) -> ServiceResponse:
    """
    Parse a newline-delimited ``key=value`` reply body.

    Unknown keys with a value fail loudly so that protocol drift is
    never silently ignored. Unknown keys without a value are skipped.

    Args:
        body: Raw reply body

    Returns:
        Parsed ServiceResponse

    Raises:
        ResponseParseError: If the body is not text or carries unknown fields
    """
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResponseParseError(f"response body is not valid UTF-8: {e}") from e

    if not text.strip():
        raise ResponseParseError("response body is empty")

    response = ServiceResponse()
    for line in text.splitlines():
        key, _, value = line.partition("=")
        attribute = RESPONSE_FIELDS.get(key)
        if attribute is not None:
            setattr(response, attribute, value)
        elif value != "":
            raise ResponseParseError(
                f"received an unexpected API field {key!r} with value {value!r}",
                key=key,
                value=value,
            )
    return response


def verify_response(response: ServiceResponse, secret: bytes) -> None:
    """
    Check the reply status, then its signature.

    The signature is only checked for an ``OK`` status.

    Args:
        response: Parsed reply
        secret: Decoded shared client secret

    Raises:
        RequestRejectedError: If the status is anything but ``OK``
        ResponseVerificationError: If the signature does not match
    """
    if response.status != ResponseStatus.OK.value:
        kind = STATUS_ERROR_KINDS.get(response.status, RequestErrorKind.UNKNOWN_FAILURE)
        logger.warning("Verification rejected by service", status=response.status, kind=kind.value)
        raise RequestRejectedError(kind)

    expected = compute_signature(secret, response.canonical_string())
    if not hmac.compare_digest(expected.encode(), response.signature.encode()):
        logger.error("Response signature mismatch", nonce=response.received_nonce[:8])
        raise ResponseVerificationError(ResponseErrorKind.BAD_SIGNATURE)
