"""Structured logging for :mod:`awkts`.

Engine and CLI code log through structlog; records are rendered by stdlib
handlers attached to the root logger. The console always gets a Rich
handler on stderr. When a log directory is configured a JSON-lines file
``awkts.log`` is added, rotated at midnight (UTC) with gzip-compressed
archives.
"""

from __future__ import annotations

import gzip
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
import shutil
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
import structlog

Logger = structlog.stdlib.BoundLogger

LOG_FILENAME = "awkts.log"
ARCHIVE_DAYS = 7

_TIMESTAMPER = structlog.processors.TimeStamper(fmt="iso", utc=True)


def _level_number(level: str) -> int:
    """Map a level name such as ``"info"`` to its numeric value.

    Raises:
        ValueError: For names the logging module does not define.
    """

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unsupported log level: {level!r}")
    return value


def _pre_chain() -> list[Any]:
    # Applied to records that did not come through structlog (warnings,
    # third-party loggers) so both paths render the same keys.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _TIMESTAMPER,
    ]


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_pre_chain(),
    )


def _console_handler(level: int, console: Console | None) -> RichHandler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
        enable_link_path=False,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=False)))
    return handler


def _compress_rotated(source: str, dest: str) -> None:
    """Rotator for the file handler: gzip ``source`` into ``dest``."""

    with open(source, "rb") as raw, gzip.open(dest, "wb") as packed:
        shutil.copyfileobj(raw, packed)
    Path(source).unlink(missing_ok=True)


def _archive_handler(path: Path, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        path,
        when="midnight",
        backupCount=ARCHIVE_DAYS,
        utc=True,
        encoding="utf-8",
        delay=True,
    )
    handler.suffix = "%Y-%m-%d"
    handler.namer = lambda name: f"{name}.gz"
    handler.rotator = _compress_rotated
    handler.setLevel(level)
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer(sort_keys=True)))
    return handler


def log_file_path(log_dir: str | Path) -> Path:
    """Return the log file location for ``log_dir`` (``~`` is expanded)."""

    return Path(log_dir).expanduser().resolve(strict=False) / LOG_FILENAME


def _install(handlers: list[logging.Handler], level: int) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def configure_logging(
    *,
    level: str = "WARNING",
    log_dir: str | Path | None = None,
    console: Console | None = None,
) -> Path | None:
    """Route structlog through Rich and, optionally, a rotating JSON file.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Level name (case-insensitive) for the root logger.
        log_dir: Directory for ``awkts.log``; created when missing.
        console: Rich console for the console handler, mainly for tests.

    Returns:
        The log file path when ``log_dir`` is given, otherwise ``None``.

    Raises:
        ValueError: If ``level`` is not a recognized level name.
    """

    number = _level_number(level)

    handlers: list[logging.Handler] = [_console_handler(number, console)]
    log_file = None
    if log_dir is not None:
        log_file = log_file_path(log_dir)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_archive_handler(log_file, number))
    _install(handlers, number)

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            _TIMESTAMPER,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.captureWarnings(True)
    return log_file


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    """Return a structlog logger with ``initial_context`` bound."""

    return structlog.get_logger(name).bind(**initial_context)


__all__ = [
    "ARCHIVE_DAYS",
    "LOG_FILENAME",
    "Logger",
    "configure_logging",
    "get_logger",
    "log_file_path",
]
