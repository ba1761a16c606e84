"""Single-session UCI evaluation client used by the analysis scheduler."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from pathlib import Path

import chess
import chess.engine

from chessweek.config import DEFAULT_EVAL_TIMEOUT_S
from chessweek.errors import EngineBusy, EngineError, EngineNotReady, EvaluationTimeout
from chessweek.evaluation_result import EvaluationResult
from chessweek.launch_stockfish__engine_client import EngineLauncher, launch_stockfish
from chessweek.utils.logger import get_logger

logger = get_logger(__name__)

_QUIT_GRACE_S = 2.0


def _terminal_evaluation(board: chess.Board) -> EvaluationResult | None:
    """Score finished positions locally; engines do not search them."""
    if board.is_checkmate():
        return EvaluationResult.checkmated(board.turn)
    if board.is_game_over():
        return EvaluationResult.neutral()
    return None


def _supported_options(
    protocol: chess.engine.UciProtocol, options: dict[str, object]
) -> dict[str, object]:
    supported = getattr(protocol, "options", {}) or {}
    return {
        name: value
        for name, value in options.items()
        if value is not None and name in supported
    }


class EngineEvaluationClient:
    """Evaluate FEN positions against one long-lived python-chess engine session.

    At most one evaluation may be outstanding. The analysis scheduler already
    serializes every call through its busy flag; a second concurrent caller is
    rejected with ``EngineBusy``. Allowing overlapping requests would need
    one engine session per caller, since UCI has no request ids.
    """

    def __init__(
        self,
        command: str | Path = "stockfish",
        *,
        timeout_s: float = DEFAULT_EVAL_TIMEOUT_S,
        options: dict[str, object] | None = None,
        launcher: EngineLauncher = launch_stockfish,
    ) -> None:
        self.command = str(command)
        self.timeout_s = timeout_s
        self.options = dict(options or {})
        self._launcher = launcher
        self._transport: asyncio.SubprocessTransport | None = None
        self._protocol: chess.engine.UciProtocol | None = None
        self._session: asyncio.Task[None] | None = None
        self._ready = asyncio.Event()
        self._busy = False
        self._closed = False

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def is_closed(self) -> bool:
        """True once the session has ended and can no longer become ready."""
        return self._closed

    @property
    def has_pending(self) -> bool:
        return self._busy

    async def start(self) -> None:
        """Spawn the engine, then configure it and wait for ``readyok`` in the background.

        Raises:
            OSError: The binary is missing or did not finish the ``uci`` handshake in time.
            EngineError: The engine rejected the handshake.
        """
        if self._protocol is not None:
            return
        self._closed = False
        try:
            self._transport, self._protocol = await asyncio.wait_for(
                self._launcher(self.command), timeout=self.timeout_s
            )
        except OSError:
            self._closed = True
            raise
        except chess.engine.EngineError as exc:
            self._closed = True
            raise EngineError(f"Engine handshake failed: {exc}") from exc
        self._session = asyncio.create_task(self._run_session(self._protocol))

    async def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait for the ready acknowledgment; return False on timeout or a closed session."""
        if self._ready.is_set():
            return True
        if self._closed:
            return False
        waiter = asyncio.ensure_future(self._ready.wait())
        watched = {waiter} if self._session is None else {waiter, self._session}
        try:
            await asyncio.wait(watched, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        return self._ready.is_set()

    async def close(self) -> None:
        protocol, transport, session = self._protocol, self._transport, self._session
        self._protocol = self._transport = self._session = None
        self._ready.clear()
        self._closed = True
        if session is not None:
            session.cancel()
            with suppress(asyncio.CancelledError):
                await session
        if protocol is not None and not protocol.returncode.done():
            with suppress(chess.engine.EngineError, TimeoutError):
                await asyncio.wait_for(protocol.quit(), timeout=_QUIT_GRACE_S)
        if transport is not None:
            transport.close()

    async def evaluate(self, fen: str, depth: int) -> EvaluationResult:
        """Evaluate ``fen`` to ``depth`` and return the score from White's view.

        Checkmate and other finished positions are scored without a search.

        Raises:
            EngineNotReady: The session never acknowledged readiness.
            EngineBusy: Another evaluation is still outstanding.
            EvaluationTimeout: The search did not finish within ``timeout_s``.
            EngineError: The engine process failed mid-search.
        """
        protocol = self._protocol
        if protocol is None or not self._ready.is_set():
            raise EngineNotReady("Engine session is not ready")
        if self._busy:
            raise EngineBusy("An evaluation is already in flight")
        board = chess.Board(fen)
        terminal = _terminal_evaluation(board)
        if terminal is not None:
            return terminal
        self._busy = True
        try:
            return await asyncio.wait_for(
                self._search(protocol, board, depth), timeout=self.timeout_s
            )
        except TimeoutError:
            logger.warning("Evaluation timed out after %.1fs; stopping search", self.timeout_s)
            raise EvaluationTimeout(
                f"No evaluation within {self.timeout_s:.1f}s for {fen}"
            ) from None
        except chess.engine.EngineError as exc:
            raise EngineError(f"Engine failed while evaluating {fen}: {exc}") from exc
        finally:
            self._busy = False

    async def _search(
        self, protocol: chess.engine.UciProtocol, board: chess.Board, depth: int
    ) -> EvaluationResult:
        result: EvaluationResult | None = None
        # Leaving the block stops the search; python-chess drops its late bestmove.
        with await protocol.analysis(board, chess.engine.Limit(depth=depth)) as analysis:
            async for info in analysis:
                score = info.get("score")
                if result is None and score is not None and info.get("depth") == depth:
                    result = EvaluationResult.from_pov_score(score)
        return result or EvaluationResult.neutral()

    async def _run_session(self, protocol: chess.engine.UciProtocol) -> None:
        try:
            await protocol.configure(_supported_options(protocol, self.options))
            await protocol.ping()
            self._ready.set()
            logger.info("Engine session ready")
            code = await protocol.returncode
            logger.warning("Engine process exited with code %s", code)
        except chess.engine.EngineError as exc:
            logger.warning("Engine session failed: %s", exc)
        finally:
            self._ready.clear()
            self._closed = True
