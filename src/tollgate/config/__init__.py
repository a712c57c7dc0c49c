"""Gateway configuration loading."""

from tollgate.config.settings import (
    BatchSettings,
    GatewaySettings,
    LoggingSettings,
    ValidationProfile,
    ValidationSettings,
    load_settings,
)

__all__ = [
    "BatchSettings",
    "GatewaySettings",
    "LoggingSettings",
    "ValidationProfile",
    "ValidationSettings",
    "load_settings",
]
