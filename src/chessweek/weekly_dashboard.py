"""Entry point for renderers: tracked players, refresh cycles and summaries."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from chessweek.analysis_scheduler import AnalysisScheduler
from chessweek.best_worst import select_best_worst
from chessweek.config import SUPPORTED_TIME_CLASSES, Settings, normalize_time_class
from chessweek.models import AnalysisStatus, GameRecord
from chessweek.summarize_rating_trend__dashboard import (
    build_rating_points,
    summarize_rating_trend,
)
from chessweek.utils import Now, normalize_string
from chessweek.utils.logger import get_logger
from chessweek.weekly_game_cache import WeeklyGameCache

logger = get_logger(__name__)

BADGE_ANALYZING = "Analyzing…"
BADGE_FAILED = "Analysis failed"
BADGE_PENDING = "Waiting…"


def badge_text(record: GameRecord) -> str:
    """Render the accuracy badge shown next to a game."""
    if record.analysis_status == AnalysisStatus.COMPLETE and record.accuracy is not None:
        return f"{record.accuracy:.1f}%"
    if record.analysis_status == AnalysisStatus.ANALYZING:
        return BADGE_ANALYZING
    if record.analysis_status == AnalysisStatus.FAILED:
        return BADGE_FAILED
    return BADGE_PENDING


def serialize_game(record: GameRecord | None) -> dict[str, object] | None:
    if record is None:
        return None
    payload = record.model_dump(mode="json", exclude={"move_text"})
    payload["badge"] = badge_text(record)
    return payload


class WeeklyDashboard:
    """Own the tracked player set and time-control class.

    ``refresh`` runs one cycle: it fetches every player (from cache when
    fresh), registers the games with the scheduler and starts the worker.
    Summaries read the cached records directly, so they reflect analysis
    progress as soon as the scheduler writes it.
    """

    def __init__(
        self,
        cache: WeeklyGameCache,
        scheduler: AnalysisScheduler,
        settings: Settings,
    ) -> None:
        self._cache = cache
        self._scheduler = scheduler
        self.settings = settings
        self.time_class = normalize_time_class(settings.time_class)
        self.players: list[str] = _unique_players(settings.players)

    @property
    def scheduler(self) -> AnalysisScheduler:
        return self._scheduler

    def set_time_class(self, time_class: str) -> bool:
        """Switch the time-control class; return True when it changed.

        Raises:
            ValueError: ``time_class`` is not a supported class.
        """
        normalized = normalize_time_class(time_class)
        if normalized not in SUPPORTED_TIME_CLASSES:
            raise ValueError(f"Unsupported time class: {time_class}")
        if normalized == self.time_class:
            return False
        logger.info("Time class changed %s -> %s; clearing weekly cache", self.time_class, normalized)
        self._cache.clear()
        self.time_class = normalized
        return True

    def add_player(self, player_id: str) -> None:
        key = normalize_string(player_id)
        if key and key not in self.players:
            self.players.append(key)

    def remove_player(self, player_id: str) -> bool:
        key = normalize_string(player_id)
        self._cache.invalidate(key)
        if key not in self.players:
            return False
        self.players.remove(key)
        return True

    async def refresh(
        self,
        players: Iterable[str] | None = None,
        time_class: str | None = None,
    ) -> dict[str, int]:
        """Run one refresh cycle and return the number of games enqueued per player."""
        if time_class:
            self.set_time_class(time_class)
        if players is not None:
            for player in _unique_players(players):
                self.add_player(player)
        self._scheduler.begin_cycle()
        results = await asyncio.gather(
            *(self._cache.fetch_weekly_games(player, self.time_class) for player in self.players),
            return_exceptions=True,
        )
        enqueued: dict[str, int] = {}
        for player, games in zip(self.players, results, strict=True):
            if isinstance(games, BaseException):
                logger.warning("Refresh failed for %s: %s", player, games)
                enqueued[player] = 0
                continue
            enqueued[player] = self._scheduler.register_games(player, games)
        self._scheduler.start()
        return enqueued

    async def summary(self, player_id: str) -> dict[str, object]:
        """Build the weekly view for one player from whatever is cached."""
        key = normalize_string(player_id)
        entry = self._cache.entry(key)
        games = entry.games if entry is not None else []
        pick = select_best_worst(games)
        current_rating = await self._cache.fetch_current_rating(key, self.time_class)
        trend = summarize_rating_trend(
            build_rating_points(games, current_rating, today=Now.as_datetime())
        )
        return {
            "player": key,
            "time_class": self.time_class,
            "games": [serialize_game(game) for game in games],
            "best": serialize_game(pick.best),
            "worst": serialize_game(pick.worst),
            "rating": trend.as_dict(),
        }

    def progress_payload(self) -> dict[str, object]:
        payload = self._scheduler.progress.as_dict()
        payload["busy"] = self._scheduler.busy
        payload["queued"] = len(self._scheduler.state.queue)
        return payload


def _unique_players(players: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for player in players:
        key = normalize_string(player)
        if key and key not in seen:
            seen.append(key)
    return seen
