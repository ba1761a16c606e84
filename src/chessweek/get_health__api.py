"""API health check handler."""

from __future__ import annotations

from fastapi import Request

from chessweek.utils.now import Now

SERVICE_NAME = "chessweek"
SERVICE_VERSION = "0.1.0"


def health(request: Request) -> dict[str, object]:
    """Report liveness plus whether the engine session has acknowledged readiness."""
    services = getattr(request.app.state, "services", None)
    engine_ready = bool(services is not None and services.engine.is_ready)
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "engine_ready": engine_ready,
        "timestamp": Now.as_datetime().isoformat(),
    }
