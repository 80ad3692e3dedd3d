"""
Logging for cdstage.

Loguru sinks are configured from settings when this module is imported, so
provisioning code can log right away. Every record carries a ``stage`` extra,
``-`` unless the caller binds one with ``logger.bind(stage=...)``.

Routing the standard ``logging`` module into loguru replaces the handlers of
the host process's root logger, so it only happens when the host asks for it
with ``setup_logging(intercept_stdlib=True)``.
"""

import inspect
import logging
import sys
from pathlib import Path

from loguru import logger as _logger

from ..settings import Settings, settings

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[stage]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def log_file_path(config: Settings) -> Path | None:
    """Path of the log file, or None when file logging is off."""
    if not config.log_to_file:
        return None
    return config.get_log_dir() / "cdstage.log"


def setup_logging(config: Settings = settings, intercept_stdlib: bool = False) -> None:
    """Configure loguru sinks from settings.

    Args:
        config: Settings holding level, format, file and rotation options
        intercept_stdlib: Also route the standard ``logging`` module into
            loguru. This replaces the root logger's handlers.
    """
    log_format = config.log_format or DEFAULT_FORMAT

    _logger.remove()
    _logger.configure(extra={"stage": "-"})
    _logger.add(
        sys.stderr,
        level=config.log_level,
        format=log_format,
        colorize=True,
        backtrace=True,
        diagnose=True,
    )

    log_file = log_file_path(config)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _logger.add(
            str(log_file),
            level=config.log_level,
            format=log_format,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="zip",
            serialize=config.log_serialize,
            backtrace=True,
            diagnose=True,
        )

    if intercept_stdlib:
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


setup_logging()

logger = _logger
