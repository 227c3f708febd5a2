"""Logging setup for ledgerguard.

Modules obtain loggers with ``get_logger(__name__-like suffix)`` so every
logger lives under the ``ledgerguard`` namespace. Nothing is emitted until
``configure_logging`` installs a handler (the CLI does this at startup).
Structured fields are passed through ``extra=`` and rendered after the
message as ``key=value`` pairs.
"""

import logging
import sys
import threading
from typing import Any, Optional

_LOGGER_PREFIX = "ledgerguard"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_configured = False
_lock = threading.Lock()


class KeyValueFormatter(logging.Formatter):
    """Render a record followed by its structured extra fields."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS
        }
        if extras:
            line += " " + " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return line


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledgerguard namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.WARNING,
    stream: Any = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Configure the ledgerguard logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(KeyValueFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. For tests."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
