"""
Authenticator Configuration
===========================
Validated settings for the verification client.
"""

import os
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import NonceGenerationError, SettingsError
from .nonce import Nonce, NonceGeneratorFunc, default_nonce_generator

# Official YubiCloud validation endpoints.
DEFAULT_ENDPOINTS: Tuple[str, ...] = (
    "https://api.yubico.com/wsapi/2.0/verify",
    "https://api2.yubico.com/wsapi/2.0/verify",
    "https://api3.yubico.com/wsapi/2.0/verify",
    "https://api4.yubico.com/wsapi/2.0/verify",
    "https://api5.yubico.com/wsapi/2.0/verify",
)

MIN_RETRY_DELAY = 0.03
MAX_RETRY_DELAY = 60.0


class RetryPolicy(BaseModel):
    """Exponential backoff for transport failures. Delays are in seconds."""

    model_config = ConfigDict(frozen=True)

    attempt_limit: int = Field(default=3, ge=1, le=255)
    initial_delay: float = 2.0
    delay_ceiling: float = 60.0
    delay_multiplier: float = 1.3

    @field_validator("initial_delay")
    @classmethod
    def _check_initial_delay(cls, v: float) -> float:
        if v <= MIN_RETRY_DELAY:
            raise ValueError("retry delay must be greater than 30 milliseconds")
        if v > MAX_RETRY_DELAY:
            raise ValueError("retry delay must not exceed one minute")
        return v

    @field_validator("delay_multiplier")
    @classmethod
    def _check_multiplier(cls, v: float) -> float:
        if v <= 1:
            raise ValueError("retry multiplier must be greater than one")
        if v > 10:
            raise ValueError("retry multiplier must not exceed 10")
        return v

    @model_validator(mode="after")
    def _check_ceiling(self) -> "RetryPolicy":
        if self.delay_ceiling < self.initial_delay:
            raise ValueError("retry delay limit must not be less than retry delay")
        return self

    def delay_for(self, retry_number: int) -> float:
        """Wait before the given retry (1-based)."""
        return min(self.initial_delay * self.delay_multiplier ** (retry_number - 1), self.delay_ceiling)


class AuthenticatorSettings(BaseModel):
    """
    Effective authenticator configuration.

    Every field is checked by its own validator, which either accepts
    the value or fails with a specific message. Omitted fields take the
    defaults below. A ``client_pool`` of ``None`` means the authenticator
    builds and owns an ``HTTPXClientPool``.
    """

    model_config = ConfigDict(frozen=True)

    nonce_generator: Any = default_nonce_generator
    sync_factor: Union[int, Literal["fast", "secure"]] = 100
    sync_time_limit: int = 6
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    endpoints: Tuple[str, ...] = DEFAULT_ENDPOINTS
    client_pool: Any = None

    @field_validator("nonce_generator")
    @classmethod
    def _check_nonce_generator(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("nonce generator is nil")
        if not hasattr(v, "generate"):
            if not callable(v):
                raise ValueError("nonce generator must be callable or provide generate()")
            v = NonceGeneratorFunc(v)
        try:
            nonce = v.generate()
            if not isinstance(nonce, Nonce):
                Nonce(nonce)
        except (NonceGenerationError, TypeError, ValueError) as e:
            raise ValueError(f"nonce generator does not work: {e}") from e
        return v

    @field_validator("sync_factor")
    @classmethod
    def _check_sync_factor(cls, v: Union[int, str]) -> Union[int, str]:
        if isinstance(v, int) and not 0 <= v <= 100:
            raise ValueError("synchronization factor must be between 0 and 100")
        return v

    @field_validator("sync_time_limit")
    @classmethod
    def _check_sync_time_limit(cls, v: int) -> int:
        if not 1 <= v <= 120:
            raise ValueError("synchronization time limit must be between 1 and 120 seconds")
        return v

    @field_validator("endpoints", mode="before")
    @classmethod
    def _check_endpoints(cls, v: Any) -> Tuple[str, ...]:
        if isinstance(v, str):
            v = (v,)
        if not v:
            raise ValueError("endpoints list is empty")
        seen = []
        for endpoint in v:
            if not isinstance(endpoint, str) or endpoint == "":
                raise ValueError("endpoint cannot be empty")
            if endpoint != endpoint.strip():
                raise ValueError("endpoint cannot contain leading or trailing whitespace")
            parsed = urlparse(endpoint)
            if parsed.scheme != "https" or not parsed.netloc:
                raise ValueError(f"endpoint {endpoint!r} must be an https URL")
            if endpoint in seen:
                raise ValueError(f"endpoint {endpoint!r} was already added")
            seen.append(endpoint)
        return tuple(seen)

    @field_validator("client_pool")
    @classmethod
    def _check_client_pool(cls, v: Any) -> Any:
        if v is None:
            return v
        if not (callable(getattr(v, "acquire", None)) and callable(getattr(v, "release", None))):
            raise ValueError("network client pool must provide acquire() and release()")
        return v

    @property
    def sync_factor_param(self) -> str:
        """``sl`` query parameter value."""
        return str(self.sync_factor)

    @property
    def sync_time_limit_param(self) -> str:
        """``timeout`` query parameter value."""
        return str(self.sync_time_limit)

    @classmethod
    def create(cls, **options: Any) -> "AuthenticatorSettings":
        """
        Build settings from keyword options.

        Raises:
            SettingsError: If any option fails validation
        """
        try:
            return cls(**options)
        except ValidationError as e:
            raise SettingsError(f"unable to initialize YubiKey authenticator: {e}") from e

    @classmethod
    def from_env(
        cls,
        prefix: str = "YUBIOTP_",
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "AuthenticatorSettings":
        """
        Build settings from environment variables.

        Recognized: ``ENDPOINTS`` (comma separated), ``SYNC_FACTOR``,
        ``SYNC_TIME_LIMIT``, ``RETRY_ATTEMPTS``, ``RETRY_DELAY``,
        ``RETRY_DELAY_LIMIT``, ``RETRY_MULTIPLIER``. Unset variables
        keep their defaults. Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        options: Dict[str, Any] = {}

        endpoints = env.get(f"{prefix}ENDPOINTS")
        if endpoints:
            options["endpoints"] = tuple(e.strip() for e in endpoints.split(",") if e.strip())

        sync_factor = env.get(f"{prefix}SYNC_FACTOR")
        if sync_factor:
            options["sync_factor"] = sync_factor

        sync_time_limit = env.get(f"{prefix}SYNC_TIME_LIMIT")
        if sync_time_limit:
            options["sync_time_limit"] = sync_time_limit

        retry: Dict[str, str] = {}
        for name, field in (
            ("RETRY_ATTEMPTS", "attempt_limit"),
            ("RETRY_DELAY", "initial_delay"),
            ("RETRY_DELAY_LIMIT", "delay_ceiling"),
            ("RETRY_MULTIPLIER", "delay_multiplier"),
        ):
            value = env.get(f"{prefix}{name}")
            if value:
                retry[field] = value
        if retry:
            options["retry"] = retry

        options.update(overrides)
        return cls.create(**options)
