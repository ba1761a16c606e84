"""Normalize raw Chess.com archive games into weekly game records."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from chessweek.models import AnalysisStatus, GameRecord, GameResult, PlayerColor
from chessweek.utils import Now, normalize_string, to_int

DRAW_RESULTS = frozenset(
    {
        "agreed",
        "repetition",
        "stalemate",
        "insufficient",
        "50move",
        "timevsinsufficient",
    }
)


def resolve_result(side_result: object) -> GameResult:
    """Map a side's own Chess.com result code to win/draw/loss.

    The tracked side's field is used rather than the opponent's because both
    sides carry the same code on a draw but different codes on a decisive game.
    """

    code = normalize_string(str(side_result or ""))
    if code == "win":
        return "win"
    if code in DRAW_RESULTS:
        return "draw"
    return "loss"


def _resolve_side(
    game: Mapping[str, object], username: str
) -> tuple[PlayerColor, Mapping[str, object], Mapping[str, object]] | None:
    white = game.get("white")
    black = game.get("black")
    white = white if isinstance(white, Mapping) else {}
    black = black if isinstance(black, Mapping) else {}
    target = normalize_string(username)
    if normalize_string(str(white.get("username") or "")) == target:
        return "white", white, black
    if normalize_string(str(black.get("username") or "")) == target:
        return "black", black, white
    return None


def _player_accuracy(accuracies: object, color: PlayerColor) -> float | None:
    if not isinstance(accuracies, Mapping):
        return None
    value = accuracies.get(color)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return round(float(value), 1)


def _end_time(game: Mapping[str, object]) -> datetime | None:
    timestamp = to_int(game.get("end_time")) or to_int(game.get("start_time"))
    return Now.from_epoch_seconds(timestamp)


def normalize_chesscom_game(
    game: Mapping[str, object],
    username: str,
    time_class: str,
    since: datetime,
) -> GameRecord | None:
    """Build a ``GameRecord`` for ``username`` or return None when it does not apply.

    Games are skipped when they use another time class or variant rules,
    when the user is on neither side, when they ended before ``since``, or
    when they carry no PGN.
    """

    if game.get("time_class") != time_class:
        return None
    if game.get("rules", "chess") != "chess":
        return None
    side = _resolve_side(game, username)
    if side is None:
        return None
    color, own, opponent = side
    end_time = _end_time(game)
    if end_time is None or end_time < since:
        return None
    pgn = game.get("pgn")
    game_id = game.get("url") or game.get("uuid")
    if not pgn or not game_id:
        return None
    accuracy = _player_accuracy(game.get("accuracies"), color)
    return GameRecord(
        game_id=str(game_id),
        move_text=str(pgn),
        end_time=end_time,
        time_class=time_class,
        player_color=color,
        player_rating=to_int(own.get("rating")),
        opponent_name=str(opponent.get("username") or "Unknown"),
        opponent_rating=to_int(opponent.get("rating")),
        result=resolve_result(own.get("result")),
        accuracy=accuracy,
        analysis_status=AnalysisStatus.COMPLETE if accuracy is not None else AnalysisStatus.PENDING,
    )
