"""Provider configuration.

Contains ``LoggingConfig`` and ``ProviderConfig`` plus ``load_config`` which
resolves settings in priority order:

1. Explicit keyword arguments
2. Environment variables (``PLOI_API_TOKEN``, ``PLOI_API_ENDPOINT``,
   ``PLOI_TIMEOUT``, ``PLOI_MAX_RETRIES``, ``TF_LOG``, ``PLOI_DEBUG``)
3. TOML file (``[provider]`` and ``[logging]`` tables)
4. Defaults

This module is the only place that reads the process environment; the
client receives everything as explicit values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from ploicloud_provider.config.parsing import _parse_bool, _parse_float, _parse_int
from ploicloud_provider.core.errors import ConfigurationError

if TYPE_CHECKING:
    from ploicloud_provider.core.client.resilient import ResilientClient
    from ploicloud_provider.core.client.transport import Transport

logger = logging.getLogger(__name__)

DEFAULT_API_ENDPOINT = "https://cloud.ploi.io/api/v1"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3

_TOKEN_ENV_VAR = "PLOI_API_TOKEN"
_ENDPOINT_ENV_VAR = "PLOI_API_ENDPOINT"
_TIMEOUT_ENV_VAR = "PLOI_TIMEOUT"
_MAX_RETRIES_ENV_VAR = "PLOI_MAX_RETRIES"
_CONFIG_FILE_ENV_VAR = "PLOI_CONFIG_FILE"
_TF_LOG_ENV_VAR = "TF_LOG"
_DEBUG_ENV_VAR = "PLOI_DEBUG"


@dataclass(frozen=True)
class LoggingConfig:
    """Request logging switches handed to the client constructor.

    Attributes:
        enabled: Log every request/response cycle (compact form)
        verbose: Also log sanitized request and response bodies
    """

    enabled: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LoggingConfig":
        """Map ``TF_LOG=DEBUG`` or ``PLOI_DEBUG=1`` to full request logging."""
        env = os.environ if environ is None else environ
        switched = (
            env.get(_TF_LOG_ENV_VAR, "").strip().upper() == "DEBUG"
            or env.get(_DEBUG_ENV_VAR, "").strip() == "1"
        )
        return cls(enabled=switched, verbose=switched)

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Create config from TOML dict (typically [logging] section)."""
        verbose = _parse_bool(data.get("verbose", False))
        return cls(
            enabled=_parse_bool(data.get("enabled", False)) or verbose,
            verbose=verbose,
        )


@dataclass
class ProviderConfig:
    """Credential, endpoint and client behaviour for one provider instance.

    Attributes:
        api_token: Bearer token sent with every request
        api_endpoint: Base URL all resource paths are appended to
        timeout: Per-request timeout in seconds
        max_retries: Retry bound for transient failures
        logging: Request logging switches
    """

    api_token: Optional[str] = None
    api_endpoint: str = DEFAULT_API_ENDPOINT
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_toml_dict(cls, data: Dict[str, Any]) -> "ProviderConfig":
        """Create config from a parsed TOML document.

        Args:
            data: Dict from TOML parsing, with optional ``[provider]`` and
                ``[logging]`` tables

        Returns:
            ProviderConfig instance
        """
        provider = data.get("provider", {})
        return cls(
            api_token=provider.get("api_token") or None,
            api_endpoint=str(provider.get("api_endpoint") or DEFAULT_API_ENDPOINT),
            timeout=_parse_float(provider.get("timeout", DEFAULT_TIMEOUT), "timeout", DEFAULT_TIMEOUT),
            max_retries=_parse_int(
                provider.get("max_retries", DEFAULT_MAX_RETRIES), "max_retries", DEFAULT_MAX_RETRIES
            ),
            logging=LoggingConfig.from_toml_dict(data.get("logging", {})),
        )

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> "ProviderConfig":
        """Return a copy with environment overrides applied."""
        env = os.environ if environ is None else environ
        updates: Dict[str, Any] = {}

        if env.get(_TOKEN_ENV_VAR):
            updates["api_token"] = env[_TOKEN_ENV_VAR]
        if env.get(_ENDPOINT_ENV_VAR):
            updates["api_endpoint"] = env[_ENDPOINT_ENV_VAR]
        if env.get(_TIMEOUT_ENV_VAR):
            updates["timeout"] = _parse_float(env[_TIMEOUT_ENV_VAR], _TIMEOUT_ENV_VAR, self.timeout)
        if env.get(_MAX_RETRIES_ENV_VAR):
            updates["max_retries"] = _parse_int(
                env[_MAX_RETRIES_ENV_VAR], _MAX_RETRIES_ENV_VAR, self.max_retries
            )

        env_logging = LoggingConfig.from_env(env)
        if env_logging.enabled:
            updates["logging"] = env_logging

        return replace(self, **updates)

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if the client could not work with this config."""
        if not self.api_token:
            raise ConfigurationError(
                f"API token is required. Set it in the [provider] table or via {_TOKEN_ENV_VAR}."
            )
        if not self.api_endpoint:
            raise ConfigurationError("API endpoint must not be empty")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")

    def describe(self) -> Dict[str, Any]:
        """Return a log-safe summary of the resolved configuration."""
        from ploicloud_provider.core.client.sanitize import sanitize_token

        return {
            "api_token": sanitize_token(self.api_token) if self.api_token else None,
            "api_endpoint": self.api_endpoint,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "logging": {"enabled": self.logging.enabled, "verbose": self.logging.verbose},
        }

    def build_client(self, transport: Optional["Transport"] = None) -> "ResilientClient":
        """Construct a ``ResilientClient`` from this configuration."""
        from ploicloud_provider.core.client.resilient import ResilientClient

        return ResilientClient(
            api_token=self.api_token or "",
            api_endpoint=self.api_endpoint,
            transport=transport,
            timeout=self.timeout,
            max_retries=self.max_retries,
            logging_config=self.logging,
        )


def load_config(
    config_file: Optional[Path] = None,
    *,
    api_token: Optional[str] = None,
    api_endpoint: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProviderConfig:
    """Resolve a ``ProviderConfig`` from arguments, environment and TOML.

    Args:
        config_file: TOML file to read. Defaults to ``PLOI_CONFIG_FILE`` when set.
        api_token: Explicit token (takes priority over everything else)
        api_endpoint: Explicit endpoint (takes priority over everything else)
        environ: Environment mapping, defaults to ``os.environ``

    Raises:
        ConfigurationError: If an explicitly named config file is missing or
            is not valid TOML.
    """
    env = os.environ if environ is None else environ

    if config_file is None and env.get(_CONFIG_FILE_ENV_VAR):
        config_file = Path(env[_CONFIG_FILE_ENV_VAR])

    config = ProviderConfig()
    if config_file is not None:
        if not config_file.is_file():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            with config_file.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_file}: {e}", original_error=e) from e
        config = ProviderConfig.from_toml_dict(data)
        logger.debug("Loaded provider config from %s", config_file)

    config = config.apply_env(env)

    explicit: Dict[str, Any] = {}
    if api_token:
        explicit["api_token"] = api_token
    if api_endpoint:
        explicit["api_endpoint"] = api_endpoint
    return replace(config, **explicit)
