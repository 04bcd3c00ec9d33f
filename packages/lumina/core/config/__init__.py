"""Configuration management for Lumina."""

from lumina.core.config.loader import (
    configure_logging,
    detect_format,
    load_app_config,
    load_config,
)
from lumina.core.config.models import (
    AppConfig,
    HistoryConfig,
    HttpBackendConfig,
    LoggingConfig,
    ModelsConfig,
    OrchestratorConfig,
)

__all__ = [
    # Loaders
    "load_config",
    "load_app_config",
    "detect_format",
    "configure_logging",
    # Models
    "AppConfig",
    "HistoryConfig",
    "HttpBackendConfig",
    "LoggingConfig",
    "ModelsConfig",
    "OrchestratorConfig",
]
