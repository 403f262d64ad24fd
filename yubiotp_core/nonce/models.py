"""
Nonce Models
============
The request nonce type and its character set.
"""

import string

NONCE_CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits
NONCE_LENGTH = 40
TIME_PREFIX_LENGTH = 4


class Nonce(str):
    """
    A single-use request token.

    Exactly 40 characters drawn from ``[A-Za-z0-9]``. The validation
    service accepts 16 to 40 characters; the full length is always used.
    """

    __slots__ = ()

    def __new__(cls, value: str) -> "Nonce":
        if len(value) != NONCE_LENGTH:
            raise ValueError(
                f"nonce must be {NONCE_LENGTH} characters long, got {len(value)}"
            )
        invalid = set(value) - set(NONCE_CHARSET)
        if invalid:
            raise ValueError(f"nonce contains invalid characters: {''.join(sorted(invalid))!r}")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"Nonce({str.__repr__(self)})"
