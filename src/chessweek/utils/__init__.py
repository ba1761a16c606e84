"""Utility exports for the chessweek package."""

from .logger import funclogger, get_logger, set_level
from .normalize_string import normalize_string
from .now import Now
from .to_int import to_int

__all__ = [
    "Now",
    "funclogger",
    "get_logger",
    "normalize_string",
    "set_level",
    "to_int",
]
