from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIME_CLASS = "blitz"
DEFAULT_CACHE_TTL_S = 300
DEFAULT_WINDOW_DAYS = 7
DEFAULT_STOCKFISH_DEPTH = 12
DEFAULT_EVAL_TIMEOUT_S = 10.0
DEFAULT_READY_BACKOFF_S = 1.0
DEFAULT_READY_DEADLINE_S = 120.0
SUPPORTED_TIME_CLASSES = ("bullet", "blitz", "rapid", "daily")


def _env_str(name: str, default: str) -> Callable[[], str]:
    return lambda: os.getenv(name, default)


def _env_int(name: str, default: int) -> Callable[[], int]:
    return lambda: int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> Callable[[], float]:
    return lambda: float(os.getenv(name, str(default)))


def _read_players() -> list[str]:
    raw = os.getenv("CHESSWEEK_PLAYERS", "")
    return [name.strip() for name in raw.split(",") if name.strip()]


def _read_cors_origins() -> list[str]:
    raw = os.getenv("CHESSWEEK_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(slots=True)
class ChesscomSettings:
    """Chess.com published-data API configuration."""

    base_url: str = field(
        default_factory=_env_str("CHESSCOM_BASE_URL", "https://api.chess.com/pub")
    )
    user_agent: str = field(
        default_factory=_env_str("CHESSCOM_USER_AGENT", "chessweek/0.1 (weekly best/worst)")
    )
    timeout_s: int = field(default_factory=_env_int("CHESSCOM_TIMEOUT_S", 15))
    archive_lookback: int = field(default_factory=_env_int("CHESSCOM_ARCHIVE_LOOKBACK", 2))


@dataclass(slots=True)
class StockfishSettings:
    """Stockfish engine configuration."""

    path: Path = field(default_factory=lambda: Path(os.getenv("STOCKFISH_PATH", "stockfish")))
    depth: int = field(default_factory=_env_int("STOCKFISH_DEPTH", DEFAULT_STOCKFISH_DEPTH))
    threads: int = field(default_factory=_env_int("STOCKFISH_THREADS", 1))
    hash_mb: int = field(default_factory=_env_int("STOCKFISH_HASH", 64))
    eval_timeout_s: float = field(
        default_factory=_env_float("STOCKFISH_EVAL_TIMEOUT_S", DEFAULT_EVAL_TIMEOUT_S)
    )


@dataclass(slots=True)
class Settings:
    """Central configuration for fetching, analysis and the dashboard API.

    Defaults are read from the environment when an instance is built, so
    ``get_settings`` sees values loaded from ``.env`` after import.
    """

    players: list[str] = field(default_factory=_read_players)
    time_class: str = field(default_factory=_env_str("CHESSWEEK_TIME_CLASS", DEFAULT_TIME_CLASS))
    cache_ttl_s: float = field(
        default_factory=_env_float("CHESSWEEK_CACHE_TTL_S", DEFAULT_CACHE_TTL_S)
    )
    window_days: int = field(default_factory=_env_int("CHESSWEEK_WINDOW_DAYS", DEFAULT_WINDOW_DAYS))
    ready_backoff_s: float = field(
        default_factory=_env_float("CHESSWEEK_READY_BACKOFF_S", DEFAULT_READY_BACKOFF_S)
    )
    ready_wait_s: float = field(default_factory=_env_float("CHESSWEEK_READY_WAIT_S", 30.0))
    ready_deadline_s: float = field(
        default_factory=_env_float("CHESSWEEK_READY_DEADLINE_S", DEFAULT_READY_DEADLINE_S)
    )
    log_level: str = field(default_factory=lambda: os.getenv("CHESSWEEK_LOG_LEVEL", "INFO").upper())
    api_host: str = field(default_factory=_env_str("CHESSWEEK_API_HOST", "127.0.0.1"))
    api_port: int = field(default_factory=_env_int("CHESSWEEK_API_PORT", 8000))
    cors_origins: list[str] = field(default_factory=_read_cors_origins)

    chesscom: ChesscomSettings = field(default_factory=ChesscomSettings)
    stockfish: StockfishSettings = field(default_factory=StockfishSettings)

    @property
    def stockfish_depth(self) -> int:
        return self.stockfish.depth

    @stockfish_depth.setter
    def stockfish_depth(self, value: int) -> None:
        self.stockfish.depth = value

    @property
    def stockfish_path(self) -> Path:
        return self.stockfish.path

    @stockfish_path.setter
    def stockfish_path(self, value: Path | str) -> None:
        self.stockfish.path = Path(value)

    def normalize_time_class(self) -> None:
        self.time_class = normalize_time_class(self.time_class)


def normalize_time_class(value: str | None) -> str:
    """Lowercase a time-control class, mapping ``correspondence`` to ``daily``."""
    cleaned = (value or DEFAULT_TIME_CLASS).strip().lower()
    return "daily" if cleaned == "correspondence" else cleaned


def get_settings(time_class: str | None = None) -> Settings:
    load_dotenv()
    settings = Settings()
    if time_class:
        settings.time_class = time_class
    settings.normalize_time_class()
    return settings
