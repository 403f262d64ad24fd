"""
Nonce Generator
===============
Timestamp-prefixed cryptographically random nonces.
"""

import secrets
import time
from typing import Callable, Protocol, runtime_checkable

from ..exceptions import NonceGenerationError
from .models import NONCE_CHARSET, NONCE_LENGTH, TIME_PREFIX_LENGTH, Nonce


@runtime_checkable
class NonceGenerator(Protocol):
    """Source of unique request nonces."""

    def generate(self) -> Nonce:
        ...


class NonceGeneratorFunc:
    """Adapts a plain callable to the ``NonceGenerator`` protocol."""

    def __init__(self, func: Callable[[], str]):
        self.func = func

    def generate(self) -> Nonce:
        value = self.func()
        try:
            return value if isinstance(value, Nonce) else Nonce(value)
        except (TypeError, ValueError) as e:
            raise NonceGenerationError(f"nonce generator returned an invalid nonce: {e}") from e

    def __eq__(self, other):
        if not isinstance(other, NonceGeneratorFunc):
            return NotImplemented
        return self.func == other.func

    def __hash__(self):
        return hash(self.func)


class TimestampedNonceGenerator:
    """
    Default nonce generator.

    The first four characters encode the current nanosecond timestamp
    (successive base-62 digits, least significant first) so that calls
    landing in the same clock tick still differ. The remaining 36
    characters come from the operating system CSPRNG, folded into the
    charset by modulo reduction.

    Args:
        random_bytes: Source of secure random bytes
        clock_ns: Source of the high resolution timestamp
    """

    def __init__(
        self,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        clock_ns: Callable[[], int] = time.time_ns,
    ):
        self.random_bytes = random_bytes
        self.clock_ns = clock_ns

    def generate(self) -> Nonce:
        base = len(NONCE_CHARSET)
        t = self.clock_ns()
        chars = []
        for _ in range(TIME_PREFIX_LENGTH):
            chars.append(NONCE_CHARSET[t % base])
            t //= base

        wanted = NONCE_LENGTH - TIME_PREFIX_LENGTH
        try:
            entropy = self.random_bytes(wanted)
        except OSError as e:
            raise NonceGenerationError(f"random source failed: {e}") from e
        if len(entropy) < wanted:
            raise NonceGenerationError("not enough random bytes")

        chars.extend(NONCE_CHARSET[b % base] for b in entropy[:wanted])
        return Nonce("".join(chars))

    def __eq__(self, other):
        if not isinstance(other, TimestampedNonceGenerator):
            return NotImplemented
        return self.random_bytes == other.random_bytes and self.clock_ns == other.clock_ns

    def __hash__(self):
        return hash((self.random_bytes, self.clock_ns))


default_nonce_generator = TimestampedNonceGenerator()


def generate_nonce() -> Nonce:
    """Generate a nonce with the default generator."""
    return default_nonce_generator.generate()
