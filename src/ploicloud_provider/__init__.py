"""ploicloud-provider: resilient Ploi Cloud API client and state reconciliation."""

__version__ = "0.1.0"

from ploicloud_provider.config import LoggingConfig, ProviderConfig, load_config
from ploicloud_provider.core.client import ResilientClient
from ploicloud_provider.core.errors import ProviderError
from ploicloud_provider.core.reconcile import ReconciledState, reconcile

__all__ = [
    "__version__",
    "LoggingConfig",
    "ProviderConfig",
    "load_config",
    "ResilientClient",
    "ProviderError",
    "ReconciledState",
    "reconcile",
]
