"""Configuration package for ploicloud-provider.

Sub-modules:
    parsing    – Boolean/number parsing helpers
    provider   – LoggingConfig, ProviderConfig dataclasses and load_config
"""

from ploicloud_provider.config.parsing import (  # noqa: F401
    _parse_bool,
)
from ploicloud_provider.config.provider import (  # noqa: F401
    DEFAULT_API_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    LoggingConfig,
    ProviderConfig,
    load_config,
)

__all__ = [
    "DEFAULT_API_ENDPOINT",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT",
    "LoggingConfig",
    "ProviderConfig",
    "load_config",
]
