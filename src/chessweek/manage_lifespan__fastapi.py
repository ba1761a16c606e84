"""FastAPI lifespan hook owning the engine session."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chessweek.errors import EngineError
from chessweek.utils.logger import get_logger
from chessweek.wiring import ChessweekServices

logger = get_logger(__name__)


def build_lifespan(services_factory: Callable[[], ChessweekServices]):
    """Return a lifespan that builds the services and starts/stops Stockfish."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = services_factory()
        app.state.services = services
        try:
            await services.engine.start()
        except (OSError, EngineError) as exc:
            # Queued games are marked failed once the scheduler sees the closed session.
            logger.warning("Engine session unavailable: %s", exc)
        try:
            yield
        finally:
            await services.scheduler.stop()
            await services.engine.close()

    return lifespan
