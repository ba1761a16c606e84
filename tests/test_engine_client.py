import asyncio
import unittest
from unittest.mock import patch

import chess
import pytest
from chess.engine import Cp, Mate

from chessweek.engine_client import EngineEvaluationClient
from chessweek.errors import EngineBusy, EngineError, EngineNotReady, EvaluationTimeout
from chessweek.evaluation_result import MATE_SCORE_CP, EvaluationResult
from chessweek.launch_stockfish__engine_client import resolve_engine_command
from tests.engine_fakes import FakeEngineLauncher, FakeUciProtocol


START_FEN = chess.STARTING_FEN
AFTER_E4_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
AFTER_E4_E5_FEN = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 2"
# 1. f3 e5 2. g4 Qh4#
FOOLS_MATE_FEN = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
STALEMATE_FEN = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"


class EngineEvaluationClientTests(unittest.IsolatedAsyncioTestCase):
    async def _ready_client(
        self, protocol: FakeUciProtocol | None = None, **kwargs
    ) -> tuple[EngineEvaluationClient, FakeEngineLauncher]:
        launcher = FakeEngineLauncher(protocol)
        client = EngineEvaluationClient("stockfish", launcher=launcher, **kwargs)
        await client.start()
        self.assertTrue(await client.wait_ready(timeout=1))
        return client, launcher

    async def test_start_configures_supported_options(self) -> None:
        client, launcher = await self._ready_client(
            options={"Threads": 2, "Hash": 64, "Skill Level": 3, "Ponder": None}
        )

        self.assertEqual(launcher.commands, ["stockfish"])
        self.assertEqual(launcher.protocol.configured, {"Threads": 2, "Hash": 64})
        self.assertTrue(client.is_ready)
        self.assertFalse(client.is_closed)

    async def test_evaluate_before_ready_raises_not_ready(self) -> None:
        protocol = FakeUciProtocol(ready=False)
        client = EngineEvaluationClient(
            "stockfish", launcher=FakeEngineLauncher(protocol), timeout_s=1
        )
        await client.start()

        self.assertFalse(await client.wait_ready(timeout=0.05))
        with self.assertRaises(EngineNotReady):
            await client.evaluate(START_FEN, 12)

        protocol.release_ready()
        self.assertTrue(await client.wait_ready(timeout=1))
        self.assertTrue(client.is_ready)

    async def test_first_score_at_requested_depth_wins(self) -> None:
        protocol = FakeUciProtocol(
            {
                START_FEN: [
                    {"depth": 11, "score": Cp(50)},
                    {"string": "NNUE evaluation enabled"},
                    {"depth": 12, "seldepth": 18, "score": Cp(34)},
                    {"depth": 12, "seldepth": 20, "score": Cp(99)},
                ]
            }
        )
        client, _ = await self._ready_client(protocol, timeout_s=1)

        result = await client.evaluate(START_FEN, 12)

        self.assertEqual(result, EvaluationResult(kind="cp", value=34))
        self.assertEqual(protocol.searches, [(START_FEN, 12)])

    async def test_score_is_reported_from_white_point_of_view(self) -> None:
        protocol = FakeUciProtocol({AFTER_E4_FEN: [{"depth": 10, "score": Cp(20)}]})
        client, _ = await self._ready_client(protocol, timeout_s=1)

        result = await client.evaluate(AFTER_E4_FEN, 10)

        self.assertEqual(result.centipawns, -20)

    async def test_mate_scores_saturate(self) -> None:
        protocol = FakeUciProtocol(
            {
                START_FEN: [{"depth": 8, "score": Mate(3)}],
                AFTER_E4_FEN: [{"depth": 8, "score": Mate(2)}],
                AFTER_E4_E5_FEN: [{"depth": 8, "score": Mate(-1)}],
            }
        )
        client, _ = await self._ready_client(protocol, timeout_s=1)

        white_mates = await client.evaluate(START_FEN, 8)
        black_mates = await client.evaluate(AFTER_E4_FEN, 8)
        white_mated = await client.evaluate(AFTER_E4_E5_FEN, 8)

        self.assertTrue(white_mates.is_mate)
        self.assertEqual(white_mates.centipawns, MATE_SCORE_CP)
        self.assertEqual(black_mates.centipawns, -MATE_SCORE_CP)
        self.assertEqual(white_mated.centipawns, -MATE_SCORE_CP)

    async def test_checkmate_is_scored_without_searching(self) -> None:
        client, launcher = await self._ready_client(timeout_s=1)

        result = await client.evaluate(FOOLS_MATE_FEN, 12)

        self.assertEqual(result, EvaluationResult(kind="mate", value=-MATE_SCORE_CP))
        self.assertEqual(launcher.protocol.searches, [])

    async def test_stalemate_is_neutral_without_searching(self) -> None:
        client, launcher = await self._ready_client(timeout_s=1)

        result = await client.evaluate(STALEMATE_FEN, 12)

        self.assertEqual(result, EvaluationResult.neutral())
        self.assertEqual(launcher.protocol.searches, [])

    async def test_search_without_score_is_neutral(self) -> None:
        protocol = FakeUciProtocol({START_FEN: [{"depth": 12, "nodes": 20}]})
        client, _ = await self._ready_client(protocol, timeout_s=1)

        result = await client.evaluate(START_FEN, 12)

        self.assertEqual(result, EvaluationResult.neutral())

    async def test_timeout_stops_search_and_leaves_session_usable(self) -> None:
        protocol = FakeUciProtocol(
            {AFTER_E4_FEN: [{"depth": 12, "score": Cp(15)}]},
            silent_fens=[START_FEN],
        )
        client, _ = await self._ready_client(protocol, timeout_s=0.05)

        with self.assertRaises(EvaluationTimeout):
            await client.evaluate(START_FEN, 12)

        self.assertTrue(protocol.analyses[0].stopped)
        self.assertFalse(client.has_pending)
        result = await client.evaluate(AFTER_E4_FEN, 12)
        self.assertEqual(result.centipawns, -15)

    async def test_concurrent_request_is_rejected_as_busy(self) -> None:
        protocol = FakeUciProtocol(silent_fens=[START_FEN])
        client, _ = await self._ready_client(protocol, timeout_s=0.05)

        first = asyncio.create_task(client.evaluate(START_FEN, 12))
        await asyncio.sleep(0)
        with self.assertRaises(EngineBusy):
            await client.evaluate(AFTER_E4_FEN, 12)
        with self.assertRaises(EvaluationTimeout):
            await first

    async def test_process_exit_fails_pending_evaluation_and_closes_session(self) -> None:
        protocol = FakeUciProtocol(silent_fens=[START_FEN])
        client, _ = await self._ready_client(protocol, timeout_s=1)

        pending = asyncio.create_task(client.evaluate(START_FEN, 12))
        await asyncio.sleep(0.01)
        protocol.exit()

        with self.assertRaises(EngineError):
            await pending
        await asyncio.sleep(0.01)
        self.assertFalse(client.is_ready)
        self.assertTrue(client.is_closed)
        self.assertFalse(await client.wait_ready(timeout=1))

    async def test_missing_binary_marks_session_closed(self) -> None:
        client = EngineEvaluationClient(
            "stockfish", launcher=FakeEngineLauncher(error=FileNotFoundError("stockfish"))
        )

        with self.assertRaises(FileNotFoundError):
            await client.start()

        self.assertTrue(client.is_closed)
        self.assertFalse(await client.wait_ready(timeout=1))

    async def test_close_quits_engine(self) -> None:
        client, launcher = await self._ready_client()

        await client.close()

        self.assertTrue(launcher.protocol.quit_called)
        self.assertTrue(launcher.closed)
        self.assertFalse(client.is_ready)


def test_resolve_engine_command_falls_back_to_path_lookup() -> None:
    with patch("chessweek.launch_stockfish__engine_client.shutil.which") as which:
        which.side_effect = lambda name: "/usr/games/stockfish" if name == "stockfish" else None
        assert resolve_engine_command("missing-engine") == "/usr/games/stockfish"


def test_resolve_engine_command_raises_when_missing() -> None:
    with patch("chessweek.launch_stockfish__engine_client.shutil.which", return_value=None):
        with pytest.raises(FileNotFoundError):
            resolve_engine_command("missing-engine")


if __name__ == "__main__":
    unittest.main()
