"""Connection configuration for the GenesisDB client."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import ConfigurationError

# Environment variables read by ClientConfig.from_env (never by the client itself)
ENV_API_URL = "GENESISDB_API_URL"
ENV_API_VERSION = "GENESISDB_API_VERSION"
ENV_AUTH_TOKEN = "GENESISDB_AUTH_TOKEN"
ENV_TIMEOUT = "GENESISDB_TIMEOUT"

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Immutable connection parameters.

    All three of base_url, api_version and auth_token must be non-empty.
    Validation happens on construction, so an instance is always usable.
    """

    base_url: str
    api_version: str
    auth_token: str = field(repr=False)
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        required = (
            ("baseUrl", self.base_url),
            ("apiVersion", self.api_version),
            ("authToken", self.auth_token),
        )
        missing = [name for name, value in required if not isinstance(value, str) or not value.strip()]
        if missing:
            raise ConfigurationError(missing)

        if self.timeout <= 0:
            raise ConfigurationError((), f"Timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ClientConfig:
        """Build a config from GENESISDB_* environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Raises:
            ConfigurationError: If a required variable is unset or empty,
                or GENESISDB_TIMEOUT is not a positive number
        """
        env = os.environ if environ is None else environ

        raw_timeout = env.get(ENV_TIMEOUT, "")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigurationError((), f"{ENV_TIMEOUT} must be a number, got {raw_timeout!r}") from None

        return cls(
            base_url=env.get(ENV_API_URL, ""),
            api_version=env.get(ENV_API_VERSION, ""),
            auth_token=env.get(ENV_AUTH_TOKEN, ""),
            timeout=timeout,
        )

    @property
    def masked_token(self) -> str:
        """Auth token with all but the last four characters hidden."""
        if len(self.auth_token) <= 4:
            return "*" * len(self.auth_token)
        return "*" * (len(self.auth_token) - 4) + self.auth_token[-4:]
