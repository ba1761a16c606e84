"""Serial analysis queue: replay, evaluate and score one game at a time."""

from __future__ import annotations

import asyncio
import contextlib
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol

from chessweek import accuracy_scorer
from chessweek.config import (
    DEFAULT_READY_BACKOFF_S,
    DEFAULT_READY_DEADLINE_S,
    DEFAULT_STOCKFISH_DEPTH,
)
from chessweek.emit_progress__scheduler import ProgressCallback, _emit_progress
from chessweek.errors import EngineNotReady, UnscoreableGame
from chessweek.evaluation_result import EvaluationResult
from chessweek.models import AnalysisStatus, GameRecord
from chessweek.move_replayer import replay_move_text
from chessweek.utils.logger import get_logger

logger = get_logger(__name__)

ANALYSIS_PROGRESS_STEP = "analysis_progress"


class Evaluator(Protocol):
    @property
    def is_ready(self) -> bool: ...

    @property
    def is_closed(self) -> bool: ...

    async def wait_ready(self, timeout: float | None = None) -> bool: ...

    async def evaluate(self, fen: str, depth: int) -> EvaluationResult: ...


@dataclass(slots=True)
class AnalysisProgress:
    games_analyzed: int = 0
    total_games_to_analyze: int = 0

    def reset(self) -> None:
        self.games_analyzed = 0
        self.total_games_to_analyze = 0

    @property
    def percent(self) -> float:
        if not self.total_games_to_analyze:
            return 100.0
        return round(100.0 * self.games_analyzed / self.total_games_to_analyze, 1)

    def as_dict(self) -> dict[str, object]:
        return {
            "games_analyzed": self.games_analyzed,
            "total_games_to_analyze": self.total_games_to_analyze,
            "percent": self.percent,
        }


@dataclass(slots=True)
class AnalysisJob:
    record: GameRecord
    player_id: str

    @property
    def game_id(self) -> str:
        return self.record.game_id


@dataclass(slots=True)
class SchedulerState:
    queue: deque[AnalysisJob] = field(default_factory=deque)
    # Queued jobs by game id, for dedup and record refresh.
    queued: dict[str, AnalysisJob] = field(default_factory=dict)
    busy: bool = False
    progress: AnalysisProgress = field(default_factory=AnalysisProgress)
    # Unfinished games counted in the current cycle's total.
    cycle_ids: set[str] = field(default_factory=set)


class AnalysisScheduler:
    """Drive replay, evaluation and scoring for every unscored game.

    Only one job runs at a time; the ``busy`` flag in ``SchedulerState`` is
    what keeps the shared engine session single-flight. Records move
    ``pending -> analyzing -> complete|failed`` and terminal states are never
    re-enqueued. When ``is_current`` reports that a record has been dropped
    from the cache (the player was refreshed or removed), the job is skipped
    or its result discarded, so orphaned records are never written.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        *,
        depth: int = DEFAULT_STOCKFISH_DEPTH,
        is_current: Callable[[str, GameRecord], bool] | None = None,
        progress: ProgressCallback | None = None,
        on_render: Callable[[], None] | None = None,
        ready_wait_s: float | None = 30.0,
        ready_backoff_s: float = DEFAULT_READY_BACKOFF_S,
        ready_deadline_s: float | None = DEFAULT_READY_DEADLINE_S,
        state: SchedulerState | None = None,
    ) -> None:
        self._evaluator = evaluator
        self.depth = depth
        self._is_current = is_current
        self._progress_callback = progress
        self._on_render = on_render
        self.ready_wait_s = ready_wait_s
        self.ready_backoff_s = ready_backoff_s
        self.ready_deadline_s = ready_deadline_s
        self.state = state or SchedulerState()
        self._task: asyncio.Task[None] | None = None
        self._waiting_since: float | None = None

    @property
    def progress(self) -> AnalysisProgress:
        return self.state.progress

    @property
    def busy(self) -> bool:
        return self.state.busy

    def begin_cycle(self) -> None:
        """Reset the progress counters at the start of a refresh cycle."""
        self.state.progress.reset()
        self.state.cycle_ids.clear()
        self._publish()

    def register_games(self, player_id: str, records: Iterable[GameRecord]) -> int:
        """Count ``records`` toward this cycle's progress and enqueue the unscored ones.

        Returns the number of newly enqueued jobs.
        """
        enqueued = 0
        progress = self.state.progress
        for record in records:
            progress.total_games_to_analyze += 1
            if record.is_terminal:
                progress.games_analyzed += 1
                continue
            self.state.cycle_ids.add(record.game_id)
            if self.enqueue(record, player_id):
                enqueued += 1
        self._publish()
        return enqueued

    def enqueue(self, record: GameRecord, player_id: str) -> bool:
        """Queue ``record`` once; return False when it is ineligible or already queued.

        A queued job whose record the cache has since replaced is pointed at
        ``record``, so the current object is the one analyzed.
        """
        if not record.needs_analysis:
            return False
        queued = self.state.queued.get(record.game_id)
        if queued is not None:
            if queued.record is not record:
                queued.record = record
                queued.player_id = player_id
            return False
        job = AnalysisJob(record=record, player_id=player_id)
        self.state.queue.append(job)
        self.state.queued[record.game_id] = job
        return True

    def start(self) -> asyncio.Task[None] | None:
        """Spawn the worker unless one is already running or there is nothing to do."""
        if self.state.busy or not self.state.queue:
            return None
        self.state.busy = True
        self._task = asyncio.create_task(self._run())
        return self._task

    async def drain(self) -> None:
        """Wait until the current worker has emptied the queue."""
        task = self._task
        if task is not None:
            await task

    async def stop(self) -> None:
        """Cancel the worker; queued jobs stay queued for the next ``start``."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        try:
            while self.state.queue:
                if not await self._await_ready():
                    continue
                await self._process(self._pop())
        finally:
            self.state.busy = False

    def _pop(self) -> AnalysisJob:
        job = self.state.queue.popleft()
        self.state.queued.pop(job.game_id, None)
        return job

    async def _await_ready(self) -> bool:
        """Return True once the engine is ready; otherwise defer or fail the queue."""
        if self._evaluator.is_ready:
            self._waiting_since = None
            return True
        loop = asyncio.get_running_loop()
        if self._waiting_since is None:
            self._waiting_since = loop.time()
        if not self._evaluator.is_closed and await self._evaluator.wait_ready(
            timeout=self.ready_wait_s
        ):
            self._waiting_since = None
            return True
        if self._evaluator.is_closed:
            self._fail_queued(EngineNotReady("Engine session has ended"))
            return False
        waited = loop.time() - self._waiting_since
        if self.ready_deadline_s is not None and waited >= self.ready_deadline_s:
            self._fail_queued(EngineNotReady(f"Engine not ready after {waited:.1f}s"))
            return False
        logger.info(
            "Engine not ready; deferring %s queued games by %.1fs",
            len(self.state.queue),
            self.ready_backoff_s,
        )
        await asyncio.sleep(self.ready_backoff_s)
        return False

    def _fail_queued(self, exc: EngineNotReady) -> None:
        logger.warning("%s; failing %s queued games", exc, len(self.state.queue))
        self._waiting_since = None
        while self.state.queue:
            job = self._pop()
            if not self._record_is_current(job):
                continue
            job.record.mark_failed()
            self._finish(job)

    def _record_is_current(self, job: AnalysisJob) -> bool:
        if self._is_current is None:
            return True
        return self._is_current(job.player_id, job.record)

    async def _process(self, job: AnalysisJob) -> None:
        record = job.record
        if not self._record_is_current(job):
            logger.debug("Skipping orphaned game %s", job.game_id)
            return
        record.mark_analyzing()
        self._publish(job)
        try:
            accuracy = await self._analyze(record)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Analysis failed for %s: %s", job.game_id, exc)
            accuracy = None
        if not self._record_is_current(job):
            logger.debug("Discarding result for orphaned game %s", job.game_id)
            return
        if accuracy is None:
            record.mark_failed()
        else:
            record.mark_complete(accuracy)
            logger.info("Scored %s for %s: %.1f%%", job.game_id, job.player_id, accuracy)
        self._finish(job)

    def _finish(self, job: AnalysisJob) -> None:
        if job.game_id in self.state.cycle_ids:
            self.state.cycle_ids.discard(job.game_id)
            self.state.progress.games_analyzed += 1
        self._publish(job)

    async def _analyze(self, record: GameRecord) -> float:
        moves, positions = replay_move_text(record.move_text)
        evaluations: list[EvaluationResult] = []
        for fen in positions:
            evaluations.append(await self._evaluator.evaluate(fen, self.depth))
        accuracy = accuracy_scorer.score(evaluations, moves, record.player_color)
        if accuracy is None:
            raise UnscoreableGame(f"No scoreable moves for {record.player_color} in {record.game_id}")
        return accuracy

    def _publish(self, job: AnalysisJob | None = None) -> None:
        fields: dict[str, object] = self.state.progress.as_dict()
        if job is not None:
            fields.update(
                game_id=job.game_id,
                player_id=job.player_id,
                status=AnalysisStatus(job.record.analysis_status).value,
            )
        _emit_progress(self._progress_callback, ANALYSIS_PROGRESS_STEP, **fields)
        if self._on_render is not None:
            self._on_render()
