import io
import time
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import chessweek
from chessweek.config import Settings
from chessweek.wiring import build_services
from tests.engine_fakes import FakeEngineLauncher
from tests.http_fakes import FakeResponse, FakeSession, chesscom_game, make_routed_get

BASE = "https://api.chess.com/pub"
ARCHIVE = f"{BASE}/player/alice/games/2024/05"


def _services(launcher: FakeEngineLauncher):
    recent = int(time.time()) - 600
    routes = {
        f"{BASE}/player/alice/games/archives": FakeResponse(json_data={"archives": [ARCHIVE]}),
        ARCHIVE: FakeResponse(
            json_data={
                "games": [
                    chesscom_game(url="g-1", end_time=recent, black="carol", white_rating=1500),
                    chesscom_game(url="g-2", end_time=recent - 60, black="dave", white_rating=1490),
                ]
            }
        ),
    }
    settings = Settings(players=["alice"], time_class="blitz")
    settings.chesscom.base_url = BASE
    return build_services(
        settings, launcher=launcher, session=FakeSession(make_routed_get(routes))
    )


class CliTests(unittest.IsolatedAsyncioTestCase):
    async def test_run_once_analyzes_every_game(self) -> None:
        launcher = FakeEngineLauncher()
        services = _services(launcher)

        summaries = await chessweek.run_once(services)

        self.assertEqual(len(summaries), 1)
        badges = [game["badge"] for game in summaries[0]["games"]]
        self.assertEqual(badges, ["100.0%", "100.0%"])
        self.assertEqual(summaries[0]["best"]["game_id"], "g-1")
        self.assertIsNone(summaries[0]["worst"])
        self.assertTrue(launcher.closed)

    async def test_run_once_without_engine_leaves_games_waiting(self) -> None:
        services = _services(FakeEngineLauncher(error=FileNotFoundError("stockfish")))

        summaries = await chessweek.run_once(services)

        badges = [game["badge"] for game in summaries[0]["games"]]
        self.assertEqual(badges, ["Waiting…", "Waiting…"])


def test_format_summary() -> None:
    text = chessweek.format_summary(
        {
            "player": "alice",
            "time_class": "blitz",
            "games": [{}, {}],
            "best": {
                "badge": "91.0%",
                "opponent_name": "carol",
                "result": "win",
                "game_id": "g-1",
            },
            "worst": None,
            "rating": {"rating": 1512, "delta": -8, "direction": "down"},
        }
    )

    assert text.splitlines() == [
        "alice (blitz): 2 games this week, rating 1512 (-8)",
        "  best:  91.0% vs carol (win) g-1",
        "  worst: none",
    ]


def test_main_without_players_prints_nothing() -> None:
    services = build_services(Settings(players=[]), launcher=FakeEngineLauncher())
    buffer = io.StringIO()

    with patch("chessweek.build_services", return_value=services), redirect_stdout(buffer):
        chessweek.main()

    assert buffer.getvalue() == ""
