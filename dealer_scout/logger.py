# === FILE: dealer_scout/logger.py ===
"""Process-wide logging for **DealerScout**.

All modules log through the one named logger::

    from dealer_scout.logger import logger
    logger.info("Checking dealer site: %s", url)

The CLI calls :func:`init_logging` with its ``--log-*`` options; the HTTP
service keeps the import-time setup unless ``LOG_LEVEL`` says otherwise.
aiohttp's access log follows the same handlers so one request yields one
line next to the check's own messages.
"""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterable, Union

# --------------------------------------------------------------------------- #
# Constants                                                                   #
# --------------------------------------------------------------------------- #

LOGGER_NAME: Final[str] = "DealerScout"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

#: third-party loggers routed through our handlers
_ATTACHED: Final[tuple[str, ...]] = ("aiohttp.access", "aiohttp.server")

_ROTATE_BYTES: Final[int] = 2 * 1024 * 1024
_ROTATE_KEEP: Final[int] = 5

_LevelT = Union[int, str]


def _build_handlers(fmt: str, log_file: str | Path | None) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                str(log_file), maxBytes=_ROTATE_BYTES, backupCount=_ROTATE_KEEP, encoding="utf-8"
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _install(lg: logging.Logger, handlers: Iterable[logging.Handler], level: _LevelT) -> None:
    lg.handlers.clear()
    for handler in handlers:
        lg.addHandler(handler)
    lg.setLevel(level)
    lg.propagate = False


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the handlers of the DealerScout logger and of aiohttp's
    server loggers.

    ``level`` may be numeric or a name such as ``"DEBUG"``; ``log_file``
    adds a rotating file next to the console output.
    """
    if isinstance(level, str):
        level = level.upper()
    handlers = _build_handlers(log_format, log_file)

    lg = logging.getLogger(LOGGER_NAME)
    _install(lg, handlers, level)
    for name in _ATTACHED:
        _install(logging.getLogger(name), handlers, level)
    return lg


def init_logging(
    level: _LevelT | None = None,
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Configure logging from CLI options; *level* defaults to ``LOG_LEVEL`` or INFO."""
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    return configure(level=level, log_file=log_file, log_format=log_format)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "LOGGER_NAME", "DEFAULT_FORMAT"]
