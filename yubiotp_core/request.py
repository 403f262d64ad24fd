"""
Request Signing
===============
Canonical query string construction and HMAC-SHA1 signing for
verification requests.
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass
from urllib.parse import quote_plus

from .exceptions import InvalidRequestError
from .nonce import Nonce


@dataclass(frozen=True)
class VerificationRequest:
    """
    Parameters for a single one-time password verification.

    Client ID and secret are issued by Yubico:
    https://upgrade.yubico.com/getapikey/
    """
    one_time_password: str
    client_id: int
    client_secret: str

    def __post_init__(self) -> None:
        # The service expects an unsigned integer id.
        if isinstance(self.client_id, bool) or not isinstance(self.client_id, int):
            raise InvalidRequestError(f"client id must be an integer, got {type(self.client_id).__name__}")
        if self.client_id < 0:
            raise InvalidRequestError("client id must not be negative")

    def __repr__(self) -> str:
        return (
            f"VerificationRequest(one_time_password='***', "
            f"client_id={self.client_id}, client_secret='***')"
        )


@dataclass(frozen=True)
class SignedQuery:
    """A canonical request string and its base64 signature."""
    canonical: str
    signature: str

    @property
    def query(self) -> str:
        """Full query string with the signature appended as ``h``."""
        return f"{self.canonical}&h={quote_plus(self.signature)}"

    def __str__(self) -> str:
        return self.query


def compute_signature(secret: bytes, message: str) -> str:
    """
    Compute the base64 (RFC 4648) HMAC-SHA1 signature of a message.

    Args:
        secret: Decoded shared client secret
        message: Canonical string, signed byte for byte

    Returns:
        Standard base64 encoded digest
    """
    digest = hmac.new(secret, message.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def build_canonical_query(
    otp: str,
    client_id: int,
    nonce: Nonce,
    sync_factor: str,
    sync_time_limit: str,
) -> str:
    # Field order is part of the wire format.
    return (
        f"id={client_id}"
        f"&nonce={quote_plus(str(nonce))}"
        f"&otp={quote_plus(otp)}"
        f"&sl={sync_factor}"
        f"&timeout={sync_time_limit}"
        f"&timestamp=1"
    )


def sign_request(
    otp: str,
    client_id: int,
    secret: bytes,
    nonce: Nonce,
    sync_factor: str,
    sync_time_limit: str,
) -> SignedQuery:
    """
    Build and sign the verification query.

    Args:
        otp: One-time password from the token touch
        client_id: API client identifier
        secret: Decoded shared client secret
        nonce: Fresh request nonce
        sync_factor: ``sl`` value, "0"-"100", "fast" or "secure"
        sync_time_limit: ``timeout`` value in seconds

    Returns:
        SignedQuery whose ``query`` is ready to append to an endpoint URL
    """
    canonical = build_canonical_query(otp, client_id, nonce, sync_factor, sync_time_limit)
    return SignedQuery(canonical=canonical, signature=compute_signature(secret, canonical))
