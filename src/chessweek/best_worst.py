from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from chessweek.models import GameRecord


@dataclass(frozen=True, slots=True)
class BestWorst:
    best: GameRecord | None
    worst: GameRecord | None


def select_best_worst(games: Iterable[GameRecord]) -> BestWorst:
    """Pick the most and least accurate scored games.

    Only strict comparisons replace the running pick, so the first game seen
    wins ties. ``worst`` is None whenever it would be the same game as
    ``best`` (a single scored game, or every scored game tied).
    """
    best: GameRecord | None = None
    worst: GameRecord | None = None
    for game in games:
        if game.accuracy is None:
            continue
        if best is None or game.accuracy > best.accuracy:
            best = game
        if worst is None or game.accuracy < worst.accuracy:
            worst = game
    if worst is best:
        worst = None
    return BestWorst(best=best, worst=worst)
