"""Spawn a Stockfish process and complete the UCI handshake."""

from __future__ import annotations

import asyncio
import shutil
from collections.abc import Awaitable, Callable
from pathlib import Path

import chess.engine

from chessweek.utils.logger import get_logger

logger = get_logger(__name__)

EngineSession = tuple[asyncio.SubprocessTransport, chess.engine.UciProtocol]
EngineLauncher = Callable[[str], Awaitable[EngineSession]]


def resolve_engine_command(command: str | Path) -> str:
    """Return an executable path for ``command`` or raise FileNotFoundError."""
    configured = Path(command)
    if configured.exists():
        return str(configured)
    resolved = shutil.which(str(configured)) or shutil.which("stockfish")
    if resolved:
        return resolved
    raise FileNotFoundError(f"Stockfish binary not found: {configured}")


async def launch_stockfish(command: str) -> EngineSession:
    resolved = resolve_engine_command(command)
    logger.info("Starting engine process %s", resolved)
    return await chess.engine.popen_uci(resolved)
