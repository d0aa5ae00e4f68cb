"""Logging for the VibeCoder model layer.

Every module logs through a child of the ``vibecoder`` logger:

    vibecoder.agents         agent lifecycle, status changes, registry
    vibecoder.content        inbox, todo and notepad collections
    vibecoder.mcp            server state and the tool registry
    vibecoder.mcp.processes  shared stdio process leases
    vibecoder.preferences    best-effort layout preference saves
    vibecoder.storage        entity file writes, reads and deletes
    vibecoder.observable     listener exceptions
    vibecoder.config         unreadable files and invalid settings

Nothing is emitted until ``setup_logging`` runs. The level comes from the
``logging`` config section, with ``verbose`` (0 errors only, 4 everything)
taking precedence over ``level``. Output goes to the configured file or
``VC_LOG``, otherwise to stderr when it is a terminal. A config reload
re-applies the level without touching handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable

from vibecoder.config.loader import get_config, on_config_reload
from vibecoder.config.schema import Config, LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("vibecoder")

_LEVEL_NAMES = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_handlers: list[logging.Handler] = []
_unregister_reload: Callable[[], None] | None = None


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Pick the effective log level; ``verbose`` wins over ``level``."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY[max(0, min(config.verbose, len(_VERBOSITY) - 1))]
    if config.level:
        return _LEVEL_NAMES.get(config.level.upper(), logging.INFO)
    return logging.INFO


def _apply_level(level: int) -> None:
    logger.setLevel(level)
    for handler in _handlers:
        handler.setLevel(level)


def _on_reload(config: Config) -> None:
    _apply_level(resolve_level(config.logging))
    logger.debug("Log level set to %s", logging.getLevelName(logger.level))


def _attach(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(
        _LowercaseLevelFormatter("%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")
    )
    logger.addHandler(handler)
    _handlers.append(handler)


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Attach handlers to the ``vibecoder`` logger.

    Call once at startup; later calls return the logger unchanged until
    ``reset_logging`` runs.

    Args:
        config: Logging settings. Defaults to the ``logging`` section of
            the global config.
    """
    global _unregister_reload
    if _unregister_reload is not None:
        return logger

    if config is None:
        config = get_config().logging
    level = resolve_level(config)
    logger.setLevel(level)

    log_path = config.file or os.environ.get("VC_LOG")
    if log_path:
        try:
            _attach(
                logging.FileHandler(os.path.expanduser(log_path), mode="a", encoding="utf-8"),
                level,
            )
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[vibecoder] Failed to open log file: {e}", file=sys.stderr)
                _attach(logging.StreamHandler(sys.stderr), level)
    elif sys.stderr.isatty():
        _attach(logging.StreamHandler(sys.stderr), level)

    _unregister_reload = on_config_reload(_on_reload)
    return logger


def reset_logging() -> None:
    """Detach and close the handlers added by setup_logging."""
    global _unregister_reload
    if _unregister_reload is not None:
        _unregister_reload()
        _unregister_reload = None
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()
    logger.setLevel(logging.NOTSET)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``vibecoder`` logger or one of its children, e.g. "mcp.processes"."""
    if name:
        return logger.getChild(name)
    return logger
