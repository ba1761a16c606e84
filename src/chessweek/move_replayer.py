"""Lenient move extraction and replay into per-ply FEN positions.

The tokenizer is a deliberate approximation of PGN movetext, not a validating
parser: tag pairs, comments, variations, NAGs, move numbers and result tokens
are dropped, and every remaining token must look like a SAN move. Extraction
stops at the first token that does not, and replay stops at the first move
python-chess cannot apply. Both return what they have gathered so far.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import chess

from chessweek.errors import ReplayTruncation
from chessweek.models import PlayerColor
from chessweek.SAN_TOKEN_PATTERN import (
    COMMENT_PATTERN,
    LINE_COMMENT_PATTERN,
    MOVE_NUMBER_PATTERN,
    MOVE_NUMBER_PREFIX_PATTERN,
    NAG_PATTERN,
    RESULT_TOKENS,
    SAN_TOKEN_PATTERN,
    TAG_PAIR_PATTERN,
)
from chessweek.utils.logger import get_logger

logger = get_logger(__name__)

_FEN_TAG_PATTERN = re.compile(r'^\s*\[FEN\s+"([^"]+)"\]\s*$', re.MULTILINE)


@dataclass(frozen=True, slots=True)
class Move:
    san: str
    ply: int
    color: PlayerColor


def _strip_variations(text: str) -> str:
    depth = 0
    kept: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
            kept.append(" ")
        elif char == ")" and depth:
            depth -= 1
            kept.append(" ")
        elif depth == 0:
            kept.append(char)
    return "".join(kept)


def _normalize_castle(san: str) -> str:
    return san.replace("0", "O") if san.startswith("0-0") else san


def extract_start_fen(move_text: str) -> str:
    """Return the ``FEN`` tag value when present, else the standard start."""
    match = _FEN_TAG_PATTERN.search(move_text or "")
    if match is None:
        return chess.STARTING_FEN
    try:
        return chess.Board(match.group(1)).fen()
    except ValueError:
        logger.debug("Ignoring invalid FEN tag %r", match.group(1))
        return chess.STARTING_FEN


def tokenize_move_text(move_text: str) -> list[str]:
    """Split movetext into candidate tokens with non-move syntax removed."""
    text = COMMENT_PATTERN.sub(" ", move_text or "")
    text = LINE_COMMENT_PATTERN.sub(" ", text)
    text = TAG_PAIR_PATTERN.sub(" ", text)
    text = _strip_variations(text)
    tokens: list[str] = []
    for token in text.split():
        if MOVE_NUMBER_PATTERN.match(token) or NAG_PATTERN.match(token) or token in RESULT_TOKENS:
            continue
        token = MOVE_NUMBER_PREFIX_PATTERN.sub("", token)
        if token:
            tokens.append(token)
    return tokens


def extract_moves(move_text: str) -> list[Move]:
    """Extract SAN moves from movetext, truncating at the first bad token."""
    white_first = extract_start_fen(move_text).split()[1] == "w"
    moves: list[Move] = []
    for token in tokenize_move_text(move_text):
        match = SAN_TOKEN_PATTERN.match(token)
        if match is None:
            logger.debug("Stopping move extraction at unparseable token %r", token)
            break
        ply = len(moves)
        white_moves = (ply % 2 == 0) == white_first
        moves.append(
            Move(
                san=_normalize_castle(match.group("san")),
                ply=ply,
                color="white" if white_moves else "black",
            )
        )
    return moves


def replay(moves: list[Move], start_fen: str = chess.STARTING_FEN) -> list[str]:
    """Replay moves and return the FEN before the first move and after each one.

    Never raises for bad moves: the sequence is truncated at the first move
    that cannot be applied, so it may hold fewer than ``len(moves) + 1``
    positions.
    """
    board = chess.Board(start_fen)
    positions = [board.fen()]
    for move in moves:
        try:
            board.push_san(move.san)
        except ValueError:
            logger.debug("%s", ReplayTruncation(move.san, move.ply))
            break
        positions.append(board.fen())
    return positions


def replay_move_text(move_text: str) -> tuple[list[Move], list[str]]:
    """Extract and replay ``move_text`` in one step."""
    moves = extract_moves(move_text)
    return moves, replay(moves, extract_start_fen(move_text))
