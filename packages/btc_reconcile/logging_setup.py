"""Logging for the ``btc_reconcile`` engine.

The engine is a library: until a host calls :func:`configure_logging`, the
``"btc_reconcile"`` logger only carries a ``NullHandler`` and emits nothing.
Engine modules obtain loggers through :func:`get_logger` and write one line
per event through :func:`log_event`, so every record reads as
``"<event> key=value key=value"`` (e.g. ``apply:rejected id=strike-7 ...``).

``BTC_RECONCILE_LOG_LEVEL`` sets the level when the host passes none.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

PACKAGE_LOGGER = "btc_reconcile"
LEVEL_ENV_VAR = "BTC_RECONCILE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Handler installed by configure_logging(); None while unconfigured.
_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or the environment when ``None``) into a numeric level.

    Unknown names resolve to ``INFO``.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
    force: bool = False,
) -> logging.Handler:
    """Send engine logs to ``stream`` and return the installed handler.

    Repeated calls keep the first handler unless ``force`` is set, in which
    case it is replaced. The package logger stops propagating to the root
    logger once configured.
    """

    global _handler
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None:
        if not force:
            return _handler
        pkg_logger.removeHandler(_handler)

    for existing in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(existing)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(numeric)
    pkg_logger.propagate = False

    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


def format_event(event: str, **fields: Any) -> str:
    """Render ``event`` followed by ``key=value`` pairs in argument order.

    ``None`` renders as ``-``; strings containing spaces are quoted.
    """

    parts = [event]
    for key, value in fields.items():
        if value is None:
            text = "-"
        elif isinstance(value, float):
            text = f"{value:g}"
        else:
            text = str(value)
            if " " in text:
                text = repr(text)
        parts.append(f"{key}={text}")
    return " ".join(parts)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    if logger.isEnabledFor(level):
        logger.log(level, format_event(event, **fields))


__all__ = [
    "PACKAGE_LOGGER",
    "configure_logging",
    "format_event",
    "get_logger",
    "log_event",
    "resolve_level",
]
