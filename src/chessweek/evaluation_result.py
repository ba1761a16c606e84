from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import chess
import chess.engine

MATE_SCORE_CP = 10000

ScoreKind = Literal["cp", "mate"]


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Engine evaluation of one position, from White's point of view.

    Mate scores are saturated: ``value`` is ``+MATE_SCORE_CP`` when White
    mates and ``-MATE_SCORE_CP`` when Black mates.
    """

    kind: ScoreKind
    value: int

    @classmethod
    def neutral(cls) -> EvaluationResult:
        return cls(kind="cp", value=0)

    @classmethod
    def from_pov_score(cls, score: chess.engine.PovScore) -> EvaluationResult:
        """Build a result from a python-chess score reported by the engine."""
        white = score.white()
        if white.is_mate():
            # Mate(0) means White is already mated; MateGiven means Black is.
            mated = white.score(mate_score=MATE_SCORE_CP) < 0
            return cls(kind="mate", value=-MATE_SCORE_CP if mated else MATE_SCORE_CP)
        return cls(kind="cp", value=white.score(mate_score=MATE_SCORE_CP))

    @classmethod
    def checkmated(cls, loser: chess.Color) -> EvaluationResult:
        return cls(kind="mate", value=-MATE_SCORE_CP if loser == chess.WHITE else MATE_SCORE_CP)

    @property
    def centipawns(self) -> int:
        return self.value

    @property
    def is_mate(self) -> bool:
        return self.kind == "mate"
