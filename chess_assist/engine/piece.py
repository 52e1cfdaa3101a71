from __future__ import annotations

from dataclasses import dataclass


WHITE = "w"
BLACK = "b"

PAWN = "p"
KNIGHT = "n"
BISHOP = "b"
ROOK = "r"
QUEEN = "q"
KING = "k"

PIECE_TYPES = (PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING)
PROMOTION_PIECES = (QUEEN, ROOK, BISHOP, KNIGHT)


def opposite(color: str) -> str:
    return BLACK if color == WHITE else WHITE


@dataclass(frozen=True)
class Piece:
    """Immutable piece value.

    Attributes:
        type (str): Lowercase piece letter, one of ``PIECE_TYPES``.
        color (str): ``"w"`` or ``"b"``.
    """

    type: str
    color: str

    @classmethod
    def from_char(cls, ch: str) -> "Piece":
        """Build a piece from its FEN letter (uppercase is White).

        Raises:
            ValueError: If ``ch`` is not a recognized piece letter.
        """
        if len(ch) != 1 or ch.lower() not in PIECE_TYPES:
            raise ValueError(f"invalid piece letter: {ch!r}")
        return cls(ch.lower(), WHITE if ch.isupper() else BLACK)

    def __str__(self) -> str:
        return self.type.upper() if self.color == WHITE else self.type
