"""Average centipawn loss and accuracy for the tracked player's moves."""

from __future__ import annotations

import math
from collections.abc import Sequence

from chessweek.evaluation_result import EvaluationResult
from chessweek.models import PlayerColor
from chessweek.move_replayer import Move
from chessweek.utils.logger import funclogger

ACCURACY_BASE = 103.1668
ACCURACY_COEFF = -0.04354
ACCURACY_OFFSET = 3.1669


def _as_centipawns(value: EvaluationResult | int | float) -> float:
    if isinstance(value, EvaluationResult):
        return float(value.centipawns)
    return float(value)


def average_centipawn_loss(
    evaluations: Sequence[EvaluationResult | int | float],
    moves: Sequence[Move],
    player_color: PlayerColor,
) -> float | None:
    """Return the player's average centipawn loss, or None with no scoreable moves.

    ``evaluations[i]`` is the White-relative score of the position before
    ``moves[i]``; a move is scoreable only when ``evaluations[i + 1]`` exists
    too. Moves that keep or improve the position count as zero loss.
    """
    total_loss = 0.0
    move_count = 0
    for move in moves:
        if move.color != player_color:
            continue
        if move.ply + 1 >= len(evaluations):
            break
        before = _as_centipawns(evaluations[move.ply])
        after = _as_centipawns(evaluations[move.ply + 1])
        delta = before - after if player_color == "white" else after - before
        total_loss += max(delta, 0.0)
        move_count += 1
    if move_count == 0:
        return None
    return total_loss / move_count


def accuracy_from_acpl(acpl: float) -> float:
    """Map average centipawn loss to a 0-100 accuracy, rounded to 0.1."""
    raw = ACCURACY_BASE * math.exp(ACCURACY_COEFF * acpl) - ACCURACY_OFFSET
    return round(min(100.0, max(0.0, raw)), 1)


@funclogger
def score(
    evaluations: Sequence[EvaluationResult | int | float],
    moves: Sequence[Move],
    player_color: PlayerColor,
) -> float | None:
    """Accuracy of ``player_color``'s moves, or None when the game is unscoreable."""
    acpl = average_centipawn_loss(evaluations, moves, player_color)
    if acpl is None:
        return None
    return accuracy_from_acpl(acpl)
