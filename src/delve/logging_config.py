import logging
import os
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER = "delve"
LEVEL_ENV_VAR = "DELVE_LOG_LEVEL"
HANDLER_NAME = "delve-console"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def resolve_level(value: Union[str, int, None], fallback: int) -> int:
    """Turn a level name ("debug") or number ("10", 10) into a logging level."""
    if value is None or value == "":
        return fallback
    if isinstance(value, int):
        return value
    text = value.strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else fallback


def configure_logging(
    level: Optional[int] = None,
    *,
    default: int = logging.WARNING,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Route ``delve.*`` records to a console handler.

    Only the package logger is touched, so the engine can be embedded in an
    application that configures the root logger itself. Level precedence:
    explicit ``level`` > DELVE_LOG_LEVEL > ``default``. Calling this again
    reconfigures the existing handler instead of adding another one.
    """
    resolved = level if level is not None else resolve_level(os.getenv(LEVEL_ENV_VAR), default)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolved)

    handler = next((h for h in logger.handlers if h.get_name() == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)
    return logger
