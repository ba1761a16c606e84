from chessweek.chess_clients.chesscom_client import (
    ARCHIVES_PATH,
    STATS_PATH,
    ChesscomClient,
    ChesscomClientContext,
)

__all__ = [
    "ARCHIVES_PATH",
    "STATS_PATH",
    "ChesscomClient",
    "ChesscomClientContext",
]
