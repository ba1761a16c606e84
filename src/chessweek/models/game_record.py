"""Normalized weekly game record with analysis state."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, model_validator


class AnalysisStatus(StrEnum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({AnalysisStatus.COMPLETE, AnalysisStatus.FAILED})

PlayerColor = Literal["white", "black"]
GameResult = Literal["win", "loss", "draw"]


class GameRecord(BaseModel):
    """A single game from the tracked player's point of view.

    Attributes:
        game_id: Source URL of the game; unique per game.
        move_text: Raw PGN text as supplied by the remote source.
        end_time: UTC time the game finished.
        time_class: Time-control class the game was played at.
        player_color: Side played by the tracked player.
        player_rating: Tracked player's rating after the game.
        opponent_name: Opponent username.
        opponent_rating: Opponent rating after the game.
        result: Outcome for the tracked player.
        accuracy: Accuracy percentage, set only once analysis completed.
        analysis_status: Position of the record in the analysis state machine.
    """

    game_id: str
    move_text: str
    end_time: datetime
    time_class: str
    player_color: PlayerColor
    player_rating: int | None = None
    opponent_name: str = "Unknown"
    opponent_rating: int | None = None
    result: GameResult
    accuracy: float | None = None
    analysis_status: AnalysisStatus = AnalysisStatus.PENDING

    @model_validator(mode="after")
    def _accuracy_implies_complete(self) -> GameRecord:
        if self.accuracy is not None and self.analysis_status != AnalysisStatus.COMPLETE:
            raise ValueError("accuracy may only be set on a complete record")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.analysis_status in TERMINAL_STATUSES

    @property
    def needs_analysis(self) -> bool:
        return self.accuracy is None and self.analysis_status == AnalysisStatus.PENDING

    def mark_analyzing(self) -> None:
        self.accuracy = None
        self.analysis_status = AnalysisStatus.ANALYZING

    def mark_complete(self, accuracy: float) -> None:
        self.analysis_status = AnalysisStatus.COMPLETE
        self.accuracy = accuracy

    def mark_failed(self) -> None:
        self.accuracy = None
        self.analysis_status = AnalysisStatus.FAILED
