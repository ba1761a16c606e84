"""Default dependency wiring for the dashboard, API and CLI."""

from __future__ import annotations

from dataclasses import dataclass

import requests

from chessweek.analysis_scheduler import AnalysisScheduler
from chessweek.chess_clients import ChesscomClient, ChesscomClientContext
from chessweek.config import Settings, get_settings
from chessweek.emit_progress__scheduler import ProgressCallback
from chessweek.engine_client import EngineEvaluationClient
from chessweek.launch_stockfish__engine_client import EngineLauncher, launch_stockfish
from chessweek.utils.logger import get_logger
from chessweek.weekly_dashboard import WeeklyDashboard
from chessweek.weekly_game_cache import WeeklyGameCache


@dataclass(slots=True)
class ChessweekServices:
    """Long-lived collaborators shared by one process."""

    settings: Settings
    engine: EngineEvaluationClient
    cache: WeeklyGameCache
    scheduler: AnalysisScheduler
    dashboard: WeeklyDashboard


def build_services(
    settings: Settings | None = None,
    *,
    launcher: EngineLauncher | None = None,
    session: requests.Session | None = None,
    progress: ProgressCallback | None = None,
) -> ChessweekServices:
    settings = settings or get_settings()
    client = ChesscomClient(
        ChesscomClientContext(
            settings=settings,
            logger=get_logger("chessweek.chess_clients"),
            session=session,
        )
    )
    cache = WeeklyGameCache(
        client,
        ttl_s=settings.cache_ttl_s,
        window_days=settings.window_days,
    )
    engine = EngineEvaluationClient(
        settings.stockfish_path,
        launcher=launcher or launch_stockfish,
        timeout_s=settings.stockfish.eval_timeout_s,
        options={"Threads": settings.stockfish.threads, "Hash": settings.stockfish.hash_mb},
    )
    scheduler = AnalysisScheduler(
        engine,
        depth=settings.stockfish_depth,
        is_current=cache.is_current,
        progress=progress,
        ready_wait_s=settings.ready_wait_s,
        ready_backoff_s=settings.ready_backoff_s,
        ready_deadline_s=settings.ready_deadline_s,
    )
    dashboard = WeeklyDashboard(cache, scheduler, settings)
    return ChessweekServices(
        settings=settings,
        engine=engine,
        cache=cache,
        scheduler=scheduler,
        dashboard=dashboard,
    )
