from chessweek.models.game_record import (
    TERMINAL_STATUSES,
    AnalysisStatus,
    GameRecord,
    GameResult,
    PlayerColor,
)

__all__ = [
    "TERMINAL_STATUSES",
    "AnalysisStatus",
    "GameRecord",
    "GameResult",
    "PlayerColor",
]
