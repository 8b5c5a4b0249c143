"""Core utilities shared across :mod:`awkts` modules.

The core namespace provides the configuration and logging seams so engine
modules stay free of process-wide state.

Example:
    >>> from awkts.core import get_logger
    >>> logger = get_logger(__name__)
    >>> isinstance(logger, object)
    True
"""

from __future__ import annotations

from .config import (
    AppConfig,
    ConfigError,
    EngineConfig,
    ParserSettings,
    load_config,
)
from .logging import configure_logging, get_logger

__all__ = [
    "AppConfig",
    "ConfigError",
    "EngineConfig",
    "ParserSettings",
    "configure_logging",
    "get_logger",
    "load_config",
]
