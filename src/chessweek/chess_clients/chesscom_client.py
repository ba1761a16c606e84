"""Chess.com published-data API client."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from chessweek.config import Settings
from chessweek.errors import FetchFailure
from chessweek.utils import normalize_string

ARCHIVES_PATH = "/player/{username}/games/archives"
STATS_PATH = "/player/{username}/stats"
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_TOO_MANY_REQUESTS = 429


@dataclass(slots=True)
class ChesscomClientContext:
    """Shared context for Chess.com API calls.

    Attributes:
        settings: Application settings used for API calls.
        logger: Logger for client-specific messages.
        session: Optional HTTP session; one is created when omitted.
    """

    settings: Settings
    logger: logging.Logger
    session: requests.Session | None = None


class ChesscomClient:
    """Client for the Chess.com archive, archive-listing and stats endpoints.

    Requests are never retried: a rate-limited or failing archive is reported
    as a ``FetchFailure`` and the caller decides what partial data to keep.
    """

    def __init__(self, context: ChesscomClientContext) -> None:
        self._context = context
        if context.session is None:
            context.session = requests.Session()
        self._session: requests.Session = context.session
        self._session.headers.update({"User-Agent": context.settings.chesscom.user_agent})

    @property
    def settings(self) -> Settings:
        return self._context.settings

    @property
    def logger(self) -> logging.Logger:
        return self._context.logger

    @property
    def session(self) -> requests.Session:
        return self._session

    def _url(self, path: str, username: str) -> str:
        base = self.settings.chesscom.base_url.rstrip("/")
        return base + path.format(username=normalize_string(username))

    def _get_json(self, url: str) -> dict:
        """Fetch a URL and decode its JSON body.

        Raises:
            FetchFailure: On transport errors, non-2xx statuses or bad JSON.
        """

        try:
            response = self.session.get(url, timeout=self.settings.chesscom.timeout_s)
        except requests.RequestException as exc:
            raise FetchFailure(f"Request to {url} failed: {exc}") from exc
        if response.status_code == HTTP_STATUS_TOO_MANY_REQUESTS:
            raise FetchFailure(f"Chess.com rate limited {url}")
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchFailure(f"HTTP error fetching {url}: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise FetchFailure(f"Invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise FetchFailure(f"Unexpected payload type from {url}")
        return payload

    def fetch_archive_index(self, username: str) -> list[str]:
        """Return the player's monthly archive URLs, oldest first."""

        payload = self._get_json(self._url(ARCHIVES_PATH, username))
        archives = payload.get("archives") or []
        return [str(url) for url in archives if url]

    def fetch_archive_games(self, archive_url: str) -> list[dict]:
        """Return the raw games listed in one monthly archive."""

        payload = self._get_json(archive_url)
        games = payload.get("games") or []
        return [game for game in games if isinstance(game, dict)]

    def fetch_recent_games(self, username: str) -> list[dict]:
        """Fetch games from the most recent archives, newest archive first.

        A failing archive is logged and skipped so the other archives still
        contribute. A failing archive index raises ``FetchFailure``.
        """

        archives = self.fetch_archive_index(username)
        if not archives:
            self.logger.info("No archives returned for %s", username)
            return []
        lookback = max(self.settings.chesscom.archive_lookback, 1)
        games: list[dict] = []
        for archive_url in reversed(archives[-lookback:]):
            try:
                games.extend(self.fetch_archive_games(archive_url))
            except FetchFailure as exc:
                self.logger.warning("Failed to fetch archive %s: %s", archive_url, exc)
        self.logger.info("Fetched %s Chess.com games for %s", len(games), username)
        return games

    def fetch_player_stats(self, username: str) -> dict:
        """Return the player's summary statistics payload."""

        return self._get_json(self._url(STATS_PATH, username))
