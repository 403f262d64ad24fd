"""
Request Nonces
==============
Unique, unpredictable tokens embedded in every verification request.
"""

from .models import NONCE_CHARSET, NONCE_LENGTH, Nonce
from .generator import (
    NonceGenerator,
    NonceGeneratorFunc,
    TimestampedNonceGenerator,
    default_nonce_generator,
    generate_nonce,
)

__all__ = [
    # Models
    "NONCE_CHARSET",
    "NONCE_LENGTH",
    "Nonce",
    # Generator
    "NonceGenerator",
    "NonceGeneratorFunc",
    "TimestampedNonceGenerator",
    "default_nonce_generator",
    "generate_nonce",
]
