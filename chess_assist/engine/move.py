from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from .piece import PROMOTION_PIECES


class MoveFlag(enum.IntFlag):
    """Move shape bits; CAPTURE combines with PROMOTION and EN_PASSANT."""

    NORMAL = 0
    CAPTURE = 1
    DOUBLE_PAWN_PUSH = 2
    KING_CASTLE = 4
    QUEEN_CASTLE = 8
    EN_PASSANT = 16
    PROMOTION = 32


@dataclass(frozen=True)
class Move:
    """Fully described move as produced by the move generator.

    Attributes:
        color (str): Side making the move (``"w"``/``"b"``).
        from_sq (int): Origin square index (0 = a8 .. 63 = h1).
        to_sq (int): Destination square index.
        piece (str): Type letter of the moving piece.
        captured (Optional[str]): Type letter of the captured piece, if any.
        flags (MoveFlag): Shape of the move.
        promotion (Optional[str]): Lowercase promotion piece, if any.
    """

    color: str
    from_sq: int
    to_sq: int
    piece: str
    captured: Optional[str] = None
    flags: MoveFlag = MoveFlag.NORMAL
    promotion: Optional[str] = None

    @property
    def is_capture(self) -> bool:
        return bool(self.flags & MoveFlag.CAPTURE)

    @property
    def is_castle(self) -> bool:
        return bool(self.flags & (MoveFlag.KING_CASTLE | MoveFlag.QUEEN_CASTLE))

    def to_uci(self) -> str:
        """Serialize the move into coordinate form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")

    def to_display(self) -> str:
        """Render the move as ``e2-e4``, ``e4xd5`` or ``e7-e8=Q``."""
        sep = "x" if self.is_capture else "-"
        promo = f"={self.promotion.upper()}" if self.promotion else ""
        return f"{square_to_str(self.from_sq)}{sep}{square_to_str(self.to_sq)}{promo}"


@dataclass(frozen=True)
class MoveRequest:
    """A move as requested by a user: squares plus optional promotion."""

    from_sq: int
    to_sq: int
    promotion: Optional[str] = None


def move_to_display(move: Optional[Move]) -> str:
    if move is None:
        return "No move found"
    return move.to_display()


def parse_move_request(value: Union[str, Mapping[str, Any], None]) -> Optional[MoveRequest]:
    """Parse coordinate text or a ``{from, to, promotion}`` mapping.

    Returns ``None`` for anything that does not describe two valid squares
    and, when present, a recognized promotion letter.
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) not in (4, 5):
            return None
        from_text, to_text = text[0:2], text[2:4]
        promo: Optional[str] = text[4] if len(text) == 5 else None
    elif isinstance(value, Mapping):
        from_text, to_text = value.get("from"), value.get("to")
        if not isinstance(from_text, str) or not isinstance(to_text, str):
            return None
        promo = value.get("promotion")
        if promo is not None and not isinstance(promo, str):
            return None
    else:
        return None

    from_sq = parse_square(from_text.lower())
    to_sq = parse_square(to_text.lower())
    if from_sq is None or to_sq is None:
        return None
    if promo:
        promo = promo.lower()
        if promo not in PROMOTION_PIECES:
            return None
    else:
        promo = None
    return MoveRequest(from_sq, to_sq, promo)


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a square index.

    Index 0 is a8 and index 63 is h1 (rank-major from the eighth rank down).

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1])
    return (8 - rank) * 8 + file


def parse_square(s: str) -> Optional[int]:
    try:
        return str_to_square(s)
    except ValueError:
        return None


def square_to_str(idx: int) -> str:
    """Convert a square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside 0..63.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    return chr(ord("a") + idx % 8) + str(8 - idx // 8)
