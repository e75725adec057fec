"""SkillForge Core: shared config, errors, and logging."""
from __future__ import annotations

from skillforge_core._version import __version__
from skillforge_core.config import (
    BackendConfig,
    BridgeConfig,
    ChainConfig,
    MetadataConfig,
    ServerConfig,
    SyncConfig,
)
from skillforge_core.errors import (
    BackendError,
    BackendUnavailableError,
    ChainError,
    ConfigError,
    PaymentError,
    RegistryError,
    SkillforgeError,
)
from skillforge_core.logging import get_logger, setup_logging

__all__ = [
    # Config
    "BackendConfig",
    # Errors
    "BackendError",
    "BackendUnavailableError",
    "BridgeConfig",
    "ChainConfig",
    "ChainError",
    "ConfigError",
    "MetadataConfig",
    "PaymentError",
    "RegistryError",
    "ServerConfig",
    "SkillforgeError",
    "SyncConfig",
    # Version
    "__version__",
    # Logging
    "get_logger",
    "setup_logging",
]
