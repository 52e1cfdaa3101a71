"""Static evaluation: material plus a small mobility term.

Pure with respect to the observable position: the board is left exactly as
it was found.
"""

from __future__ import annotations

from typing import Dict, Final

from chess_assist.engine.board import Board
from chess_assist.engine.piece import BISHOP, KING, KNIGHT, PAWN, QUEEN, ROOK, WHITE, opposite


# Material values in centipawns
P_VAL: Final = 100
N_VAL: Final = 320
B_VAL: Final = 330
R_VAL: Final = 500
Q_VAL: Final = 900
K_VAL: Final = 20000

PIECE_VALUES: Final[Dict[str, int]] = {
    PAWN: P_VAL,
    KNIGHT: N_VAL,
    BISHOP: B_VAL,
    ROOK: R_VAL,
    QUEEN: Q_VAL,
    KING: K_VAL,
}

# Centipawns per legal move of difference between the two sides
MOBILITY_WEIGHT: Final = 2


def material(board: Board) -> int:
    """Signed material balance, White positive."""
    score = 0
    for piece in board.squares:
        if piece is None:
            continue
        value = PIECE_VALUES[piece.type]
        score += value if piece.color == WHITE else -value
    return score


def mobility(board: Board) -> int:
    """Legal move count of the side to move minus the opponent's.

    The opponent's count is taken with ``side_to_move`` flipped; it is
    restored before returning.
    """
    stm = board.side_to_move
    own = len(board.generate_legal_moves())
    board.side_to_move = opposite(stm)
    try:
        theirs = len(board.generate_legal_moves())
    finally:
        board.side_to_move = stm
    return own - theirs


def evaluate(board: Board) -> int:
    """Return material (White positive) plus the weighted mobility term."""
    return material(board) + mobility(board) * MOBILITY_WEIGHT
