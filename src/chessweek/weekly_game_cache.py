"""Per-player cache of the last week's games."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

from pydantic import ValidationError

from chessweek.chess_clients import ChesscomClient
from chessweek.config import DEFAULT_CACHE_TTL_S, DEFAULT_WINDOW_DAYS
from chessweek.errors import FetchFailure
from chessweek.models import GameRecord
from chessweek.normalize_chesscom_game__weekly_cache import normalize_chesscom_game
from chessweek.utils import Now, normalize_string, to_int
from chessweek.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class PlayerGameCache:
    """Games fetched for one player, most recent first."""

    games: list[GameRecord]
    time_class: str
    fetched_at: float

    def is_valid(self, time_class: str, now: float, ttl_s: float) -> bool:
        return self.time_class == time_class and (now - self.fetched_at) < ttl_s


class WeeklyGameCache:
    """Fetch, normalize and cache each player's games from the last week.

    Fetch failures never propagate: a failing archive is skipped and a player
    whose archive index cannot be read gets an empty list, which is not
    cached so the next refresh tries again.
    """

    def __init__(
        self,
        client: ChesscomClient,
        *,
        ttl_s: float = DEFAULT_CACHE_TTL_S,
        window_days: int = DEFAULT_WINDOW_DAYS,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = Now.as_datetime,
    ) -> None:
        self._client = client
        self.ttl_s = ttl_s
        self.window_days = window_days
        self._clock = clock
        self._now = now
        self._entries: dict[str, PlayerGameCache] = {}

    def entry(self, player_id: str) -> PlayerGameCache | None:
        return self._entries.get(normalize_string(player_id))

    def players(self) -> list[str]:
        return list(self._entries)

    def invalidate(self, player_id: str) -> None:
        self._entries.pop(normalize_string(player_id), None)

    def clear(self) -> None:
        self._entries.clear()

    def is_current(self, player_id: str, record: GameRecord) -> bool:
        """True when ``record`` is the very object held by the player's entry."""
        entry = self.entry(player_id)
        if entry is None:
            return False
        return any(game is record for game in entry.games)

    async def fetch_weekly_games(self, player_id: str, time_class: str) -> list[GameRecord]:
        """Return the player's games from the last ``window_days`` for ``time_class``.

        A valid entry (same time class, younger than ``ttl_s``) is returned as
        the same list object; otherwise the games are refetched and the entry
        replaced.
        """
        key = normalize_string(player_id)
        entry = self._entries.get(key)
        if entry is not None and entry.is_valid(time_class, self._clock(), self.ttl_s):
            logger.debug("Weekly cache hit for %s (%s)", key, time_class)
            return entry.games
        try:
            raw_games = await asyncio.to_thread(self._client.fetch_recent_games, key)
        except FetchFailure as exc:
            logger.warning("Weekly fetch failed for %s: %s", key, exc)
            return []
        since = self._now() - timedelta(days=self.window_days)
        records = self._normalize_games(raw_games, key, time_class, since)
        self._entries[key] = PlayerGameCache(
            games=records, time_class=time_class, fetched_at=self._clock()
        )
        logger.info("Cached %s %s games from the last week for %s", len(records), time_class, key)
        return records

    @staticmethod
    def _normalize_games(
        raw_games: Iterable[Mapping[str, object]],
        username: str,
        time_class: str,
        since: datetime,
    ) -> list[GameRecord]:
        records: list[GameRecord] = []
        seen_ids: set[str] = set()
        for game in raw_games:
            try:
                record = normalize_chesscom_game(game, username, time_class, since)
            except ValidationError as exc:
                logger.debug("Skipping malformed game %s: %s", game.get("url"), exc)
                continue
            if record is None or record.game_id in seen_ids:
                continue
            seen_ids.add(record.game_id)
            records.append(record)
        records.sort(key=lambda record: record.end_time, reverse=True)
        return records

    async def fetch_current_rating(self, player_id: str, time_class: str) -> int | None:
        """Read the player's latest rating for ``time_class`` from the stats endpoint."""
        key = normalize_string(player_id)
        try:
            stats = await asyncio.to_thread(self._client.fetch_player_stats, key)
        except FetchFailure as exc:
            logger.warning("Stats fetch failed for %s: %s", key, exc)
            return None
        section = stats.get(f"chess_{time_class}")
        if not isinstance(section, Mapping):
            return None
        last = section.get("last")
        if not isinstance(last, Mapping):
            return None
        return to_int(last.get("rating"))
