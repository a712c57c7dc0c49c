"""CLI bootstrap helpers: logging and component wiring."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from tollgate.batch.manager import BatchSessionManager
from tollgate.config.settings import GatewaySettings
from tollgate.gateway.service import ValidationGateway
from tollgate.registry.bootstrap import build_default_registry

_LOGGING_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """Configure Rich-backed logging once for CLI commands.

    Args:
        level: Root log level name.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
    )
    _LOGGING_CONFIGURED = True


def build_gateway(settings: GatewaySettings) -> ValidationGateway:
    """Wire registry, batch manager, and gateway from settings.

    Args:
        settings: Loaded gateway settings.

    Returns:
        Gateway over a registry holding the built-in model types. The batch
        cleanup scheduler is not running until the gateway is started or
        entered as a context manager.
    """
    return ValidationGateway(
        build_default_registry(),
        BatchSessionManager.from_settings(settings.batch),
        settings,
    )
