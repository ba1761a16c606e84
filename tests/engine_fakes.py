from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping

import chess
import chess.engine

from chessweek.evaluation_result import EvaluationResult


class FakeAnalysis:
    """Stand-in for ``chess.engine.AnalysisResult`` over scripted info dicts."""

    def __init__(self, infos: list[dict], *, finishes: bool = True) -> None:
        self._infos = list(infos)
        self._finishes = finishes
        self._wake = asyncio.Event()
        self._error: Exception | None = None
        self.finished = False
        self.stopped = False

    def __enter__(self) -> FakeAnalysis:
        return self

    def __exit__(self, *_exc) -> None:
        self.stop()

    def stop(self) -> None:
        if not self.finished:
            self.stopped = True
            self.finished = True
            self._wake.set()

    def fail(self, exc: Exception) -> None:
        self._error = exc
        self._wake.set()

    def __aiter__(self) -> FakeAnalysis:
        return self

    async def __anext__(self) -> dict:
        await asyncio.sleep(0)
        if self._error is not None:
            raise self._error
        if self._infos:
            return self._infos.pop(0)
        if not self._finishes and not self.finished:
            await self._wake.wait()
            if self._error is not None:
                raise self._error
        self.finished = True
        raise StopAsyncIteration


class FakeUciProtocol:
    """In-memory ``chess.engine.UciProtocol`` answering scripted searches.

    ``scripts`` maps a FEN to info dicts whose ``score`` is relative to the
    side to move, as a UCI engine reports it; the fake wraps it in a
    ``PovScore`` the way python-chess does.
    """

    def __init__(
        self,
        scripts: Mapping[str, list[dict]] | None = None,
        *,
        ready: bool = True,
        silent_fens: Iterable[str] = (),
        supported_options: Iterable[str] = ("Threads", "Hash"),
    ) -> None:
        self.scripts = dict(scripts or {})
        self.silent_fens = set(silent_fens)
        self.options = {name: None for name in supported_options}
        self.configured: dict[str, object] = {}
        self.searches: list[tuple[str, int | None]] = []
        self.analyses: list[FakeAnalysis] = []
        self.quit_called = False
        self._ready_gate = asyncio.Event()
        if ready:
            self._ready_gate.set()
        self._returncode: asyncio.Future[int] | None = None

    @property
    def returncode(self) -> asyncio.Future[int]:
        if self._returncode is None:
            self._returncode = asyncio.get_running_loop().create_future()
        return self._returncode

    async def configure(self, options: Mapping[str, object]) -> None:
        self._check_alive()
        self.configured.update(options)

    async def ping(self) -> None:
        gate = asyncio.ensure_future(self._ready_gate.wait())
        try:
            await asyncio.wait({gate, self.returncode}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            gate.cancel()
        self._check_alive()

    def release_ready(self) -> None:
        self._ready_gate.set()

    async def analysis(self, board: chess.Board, limit: chess.engine.Limit) -> FakeAnalysis:
        self._check_alive()
        fen = board.fen()
        self.searches.append((fen, limit.depth))
        if fen in self.silent_fens:
            analysis = FakeAnalysis([], finishes=False)
        else:
            default = [{"depth": limit.depth, "score": chess.engine.Cp(0)}]
            infos = [self._with_pov(info, board.turn) for info in self.scripts.get(fen, default)]
            analysis = FakeAnalysis(infos)
        self.analyses.append(analysis)
        return analysis

    def exit(self, code: int = 1) -> None:
        if not self.returncode.done():
            self.returncode.set_result(code)
        for analysis in self.analyses:
            analysis.fail(chess.engine.EngineTerminatedError(f"engine process died (exit code: {code})"))

    async def quit(self) -> None:
        self.quit_called = True
        if not self.returncode.done():
            self.returncode.set_result(0)

    def _check_alive(self) -> None:
        if self._returncode is not None and self._returncode.done():
            raise chess.engine.EngineTerminatedError("engine process dead")

    @staticmethod
    def _with_pov(info: dict, turn: chess.Color) -> dict:
        converted = dict(info)
        if isinstance(converted.get("score"), chess.engine.Score):
            converted["score"] = chess.engine.PovScore(converted["score"], turn)
        return converted


class FakeSubprocessTransport:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeEngineLauncher:
    """Launcher returning a ``FakeUciProtocol`` instead of spawning Stockfish."""

    def __init__(
        self,
        protocol: FakeUciProtocol | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.protocol = protocol or FakeUciProtocol()
        self.transport = FakeSubprocessTransport()
        self.error = error
        self.commands: list[str] = []

    async def __call__(self, command: str) -> tuple[FakeSubprocessTransport, FakeUciProtocol]:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        return self.transport, self.protocol

    @property
    def started(self) -> bool:
        return bool(self.commands)

    @property
    def closed(self) -> bool:
        return self.transport.closed


class StubEvaluator:
    """Scheduler-facing evaluator returning scripted centipawn scores in call order."""

    def __init__(
        self,
        scores: Iterable[int] = (),
        *,
        ready_after: int = 0,
        error: Exception | None = None,
        closed: bool = False,
    ) -> None:
        self._scores = list(scores)
        self.ready_after = ready_after
        self.error = error
        self.closed = closed
        self.fens: list[str] = []
        self.wait_calls = 0

    @property
    def is_ready(self) -> bool:
        return not self.closed and self.wait_calls >= self.ready_after

    @property
    def is_closed(self) -> bool:
        return self.closed

    async def wait_ready(self, timeout: float | None = None) -> bool:
        self.wait_calls += 1
        await asyncio.sleep(0)
        return self.is_ready

    async def evaluate(self, fen: str, depth: int) -> EvaluationResult:
        self.fens.append(fen)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self._scores:
            return EvaluationResult(kind="cp", value=self._scores.pop(0))
        return EvaluationResult.neutral()
