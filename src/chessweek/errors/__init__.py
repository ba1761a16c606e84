"""Custom error types used in chessweek."""

import requests


class ChessweekError(Exception):
    """Base class for analysis pipeline errors."""


class FetchFailure(requests.RequestException):
    """Remote game source request failed or returned an unusable payload."""


class ReplayTruncation(ChessweekError):
    """A move could not be applied while replaying a game."""

    def __init__(self, san: str, ply: int) -> None:
        super().__init__(f"Could not apply {san!r} at ply {ply}")
        self.san = san
        self.ply = ply


class EngineError(ChessweekError):
    """Base class for engine session errors."""


class EngineNotReady(EngineError):
    """The engine session has not acknowledged readiness yet."""


class EngineBusy(EngineError):
    """An evaluation was requested while another one is still pending."""


class EvaluationTimeout(EngineError):
    """The engine did not report a score within the request timeout."""


class UnscoreableGame(ChessweekError):
    """The tracked player made no scoreable moves in the game."""


__all__ = [
    "ChessweekError",
    "EngineBusy",
    "EngineError",
    "EngineNotReady",
    "EvaluationTimeout",
    "FetchFailure",
    "ReplayTruncation",
    "UnscoreableGame",
]
