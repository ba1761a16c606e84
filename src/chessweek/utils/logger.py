"""Logger configuration and convenience helpers."""

from __future__ import annotations

import logging
import sys
import time
from functools import wraps

_DEFAULT_LOGGER_NAME = "chessweek"
_DEFAULT_LOG_LEVEL = logging.INFO
_DEFAULT_FORMATTER = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
_DEFAULT_HANDLER = logging.StreamHandler(sys.stdout)
_DEFAULT_HANDLER.setFormatter(_DEFAULT_FORMATTER)


def _configure_logger(logger: logging.Logger, level: int) -> None:
    """
    Configures a logger with the specified logging level and default handler.

    If the logger's level is not set, this function sets it to the provided level.
    It also ensures that a default handler is attached if no handlers are present,
    and disables propagation to ancestor loggers.

    Parameters
    ----------
    logger : logging.Logger
        The logger instance to configure.
    level : int
        The logging level to set if the logger's level is not already set.

    Examples
    --------
    >>> import logging
    >>> from chessweek.utils.logger import _configure_logger
    >>> logger = logging.getLogger("chessweek.scheduler")
    >>> _configure_logger(logger, logging.INFO)
    >>> logger.info("Queue drained")
    """
    if logger.level == logging.NOTSET:
        logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(_DEFAULT_HANDLER)
    logger.propagate = False


def get_logger(name: str | None = None, level: int = _DEFAULT_LOG_LEVEL) -> logging.Logger:
    """Return a configured logger for the given name."""
    logger = logging.getLogger(name or _DEFAULT_LOGGER_NAME)
    _configure_logger(logger, level)
    return logger


def set_level(level: int | str, logger_names: list[str] | None = None) -> None:
    """Set the log level for one or more logger names."""
    names = logger_names or [_DEFAULT_LOGGER_NAME, "uvicorn"]
    for name in names:
        logging.getLogger(name).setLevel(level)
        # Module loggers carry their own level, so update the children too.
        prefix = f"{name}."
        for existing in list(logging.root.manager.loggerDict):
            if existing.startswith(prefix):
                logging.getLogger(existing).setLevel(level)


def funclogger(func):
    """Decorator to add debug logging around a function call.

    Logs the qualified function name, its arguments, the elapsed time and the
    return value.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        function_name = func.__qualname__
        function_path = f"{func.__module__}.{function_name}".replace("<", "").replace(">", "")
        logger = get_logger(function_path)

        logger.debug("Starting %s args=%r kwargs=%r", function_name, args, kwargs)
        start_time = time.time()
        result = func(*args, **kwargs)
        elapsed_time = time.time() - start_time
        logger.debug("Finished %s in %.4f seconds", function_name, elapsed_time)
        logger.debug("Return Value: %s (%s)", result, type(result).__name__)
        return result

    return wrapper
