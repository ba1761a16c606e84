"""HTTP surface for the weekly dashboard."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, cast

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from pydantic import BaseModel
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

from chessweek.config import get_settings
from chessweek.get_health__api import SERVICE_VERSION, health
from chessweek.manage_lifespan__fastapi import build_lifespan
from chessweek.utils import normalize_string, set_level
from chessweek.weekly_dashboard import WeeklyDashboard
from chessweek.wiring import ChessweekServices, build_services


class RefreshRequest(BaseModel):
    players: list[str] | None = None
    time_class: str | None = None


def get_dashboard(request: Request) -> WeeklyDashboard:
    services: ChessweekServices = request.app.state.services
    return services.dashboard


DashboardDep = Annotated[WeeklyDashboard, Depends(get_dashboard)]

router = APIRouter(prefix="/api")
router.add_api_route("/health", health, methods=["GET"])


@router.get("/weekly/{player}")
async def weekly_summary(player: str, dashboard: DashboardDep) -> dict[str, object]:
    if normalize_string(player) not in dashboard.players:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not tracked")
    return await dashboard.summary(player)


@router.get("/progress")
def analysis_progress(dashboard: DashboardDep) -> dict[str, object]:
    return dashboard.progress_payload()


@router.post("/refresh")
async def refresh(payload: RefreshRequest, dashboard: DashboardDep) -> dict[str, object]:
    try:
        enqueued = await dashboard.refresh(payload.players, payload.time_class)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {
        "status": "ok",
        "time_class": dashboard.time_class,
        "players": list(dashboard.players),
        "enqueued": enqueued,
        "progress": dashboard.progress_payload(),
    }


@router.delete("/players/{player}")
def remove_player(player: str, dashboard: DashboardDep) -> dict[str, object]:
    if not dashboard.remove_player(player):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not tracked")
    return {"status": "ok", "players": list(dashboard.players)}


def create_app(
    services_factory: Callable[[], ChessweekServices] = build_services,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    origins = cors_origins if cors_origins is not None else get_settings().cors_origins
    application = FastAPI(
        title="chessweek",
        version=SERVICE_VERSION,
        lifespan=build_lifespan(services_factory),
        middleware=[
            Middleware(
                cast("type[object]", CORSMiddleware),
                allow_origins=origins,
                allow_methods=["*"],
                allow_headers=["*"],
            )
        ],
    )
    application.include_router(router)
    return application


app = create_app()


def serve() -> None:
    """Run the API under uvicorn using the configured host and port."""
    settings = get_settings()
    set_level(settings.log_level)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
