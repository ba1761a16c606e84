"""chessweek package entrypoints."""

from __future__ import annotations

import asyncio

from chessweek.errors import EngineError
from chessweek.utils.logger import get_logger, set_level
from chessweek.wiring import ChessweekServices, build_services

logger = get_logger(__name__)


def _describe(game: dict[str, object] | None) -> str:
    if game is None:
        return "none"
    return f"{game['badge']} vs {game['opponent_name']} ({game['result']}) {game['game_id']}"


def format_summary(summary: dict[str, object]) -> str:
    rating = summary.get("rating") or {}
    delta = rating.get("delta") if isinstance(rating, dict) else None
    current = rating.get("rating") if isinstance(rating, dict) else None
    games = summary.get("games") or []
    lines = [
        f"{summary['player']} ({summary['time_class']}): {len(games)} games this week, "
        f"rating {current if current is not None else 'n/a'}"
        + (f" ({delta:+d})" if isinstance(delta, int) else ""),
        f"  best:  {_describe(summary.get('best'))}",
        f"  worst: {_describe(summary.get('worst'))}",
    ]
    return "\n".join(lines)


async def run_once(services: ChessweekServices) -> list[dict[str, object]]:
    """Refresh every configured player, wait for analysis and collect summaries."""
    engine_started = True
    try:
        await services.engine.start()
    except (OSError, EngineError) as exc:
        logger.warning("Engine session unavailable, skipping analysis: %s", exc)
        engine_started = False
    try:
        await services.dashboard.refresh()
        if engine_started:
            await services.scheduler.drain()
        return [await services.dashboard.summary(player) for player in services.dashboard.players]
    finally:
        await services.scheduler.stop()
        await services.engine.close()


def main() -> None:
    """Run a single fetch-analyze-summarize pass for the configured players."""
    services = build_services()
    set_level(services.settings.log_level)
    if not services.dashboard.players:
        logger.warning("No players configured; set CHESSWEEK_PLAYERS")
        return
    for summary in asyncio.run(run_once(services)):
        print(format_summary(summary))


__all__ = [
    "format_summary",
    "main",
    "run_once",
]
