"""
Shared fixtures: fake network clients, a fake pool and signed reply bodies.
"""

import asyncio
import base64
from typing import Any, List, Sequence

import pytest

from yubiotp_core.request import compute_signature
from yubiotp_core.response import ServiceResponse

SECRET = b"secretkey"
SECRET_B64 = base64.b64encode(SECRET).decode()

ENDPOINTS = (
    "https://one.example.com/wsapi/2.0/verify",
    "https://two.example.com/wsapi/2.0/verify",
    "https://three.example.com/wsapi/2.0/verify",
    "https://four.example.com/wsapi/2.0/verify",
    "https://five.example.com/wsapi/2.0/verify",
)


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code


class FakeClient:
    """
    Plays back a script of outcomes, one per GET.

    Each item is bytes (a reply body), a FakeResponse, an exception
    instance (raised) or a float (seconds to hang before replying b"").
    The last item repeats once the script runs out.
    """

    def __init__(self, script: Sequence[Any]):
        self.script = list(script)
        self.urls: List[str] = []

    async def get(self, url: str) -> FakeResponse:
        self.urls.append(url)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, float):
            await asyncio.sleep(item)
            return FakeResponse(b"")
        if isinstance(item, FakeResponse):
            return item
        return FakeResponse(item)


class FakePool:
    def __init__(self, client: FakeClient):
        self.client = client
        self.acquired = 0
        self.released = 0

    @property
    def in_use(self) -> int:
        return self.acquired - self.released

    async def acquire(self) -> FakeClient:
        self.acquired += 1
        return self.client

    async def release(self, client: FakeClient) -> None:
        self.released += 1


class SleepRecorder:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def build_body(secret: bytes = SECRET, signature: str = None, **fields: str) -> bytes:
    values = {
        "status": "OK",
        "nonce": "ABC",
        "otp": "cccccc",
        "sessioncounter": "1",
        "sessionuse": "1",
        "sl": "100",
        "t": "2024",
        "timestamp": "1",
    }
    values.update(fields)
    response = ServiceResponse(
        received_otp=values["otp"],
        received_nonce=values["nonce"],
        session_counter=values["sessioncounter"],
        session_use=values["sessionuse"],
        status=values["status"],
        sync_factor=values["sl"],
        request_timestamp=values["t"],
        activation_timestamp=values["timestamp"],
    )
    if signature is None:
        signature = compute_signature(secret, response.canonical_string())
    lines = [f"{key}={value}" for key, value in values.items()]
    lines.append(f"h={signature}")
    return "\n".join(lines).encode()


@pytest.fixture
def signed_body():
    return build_body


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_pool():
    def factory(*script: Any) -> FakePool:
        return FakePool(FakeClient(script))
    return factory
