from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .move import Move, MoveFlag, parse_move_request, parse_square, square_to_str, str_to_square
from .piece import (
    BISHOP,
    BLACK,
    KING,
    KNIGHT,
    PAWN,
    PROMOTION_PIECES,
    QUEEN,
    ROOK,
    WHITE,
    Piece,
    opposite,
)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Square offsets on the 0 = a8 .. 63 = h1 layout
KNIGHT_OFFSETS = (-17, -15, -10, -6, 6, 10, 15, 17)
BISHOP_OFFSETS = (-9, -7, 7, 9)
ROOK_OFFSETS = (-8, -1, 1, 8)
QUEEN_OFFSETS = BISHOP_OFFSETS + ROOK_OFFSETS
KING_OFFSETS = (-9, -8, -7, -1, 1, 7, 8, 9)
SLIDER_OFFSETS: Dict[str, Tuple[int, ...]] = {
    BISHOP: BISHOP_OFFSETS,
    ROOK: ROOK_OFFSETS,
    QUEEN: QUEEN_OFFSETS,
}


def _file(sq: int) -> int:
    return sq % 8


def _rank(sq: int) -> int:
    return sq // 8


@dataclass(frozen=True)
class CastlingRights:
    """Four independent castling flags."""

    white_king: bool = True
    white_queen: bool = True
    black_king: bool = True
    black_queen: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    @classmethod
    def from_fen(cls, text: str) -> "CastlingRights":
        """Parse the FEN castling field (``"-"`` or a subset of ``KQkq``).

        Raises:
            ValueError: On any letter outside ``KQkq``.
        """
        if text == "-":
            return cls.none()
        if not text or any(ch not in "KQkq" for ch in text):
            raise ValueError("invalid castling rights")
        return cls("K" in text, "Q" in text, "k" in text, "q" in text)

    def to_fen(self) -> str:
        letters = "".join(
            ch
            for ch, flag in (
                ("K", self.white_king),
                ("Q", self.white_queen),
                ("k", self.black_king),
                ("q", self.black_queen),
            )
            if flag
        )
        return letters or "-"

    def without_color(self, color: str) -> "CastlingRights":
        if color == WHITE:
            return replace(self, white_king=False, white_queen=False)
        return replace(self, black_king=False, black_queen=False)

    def without_corner(self, sq: int, color: str) -> "CastlingRights":
        """Drop the right tied to a rook's home corner, if ``sq`` is one."""
        name = _ROOK_CORNERS.get((sq, color))
        if name is None:
            return self
        return replace(self, **{name: False})


_ROOK_CORNERS: Dict[Tuple[int, str], str] = {
    (63, WHITE): "white_king",
    (56, WHITE): "white_queen",
    (7, BLACK): "black_king",
    (0, BLACK): "black_queen",
}


@dataclass(frozen=True)
class _Castle:
    flag: MoveFlag
    right: str
    king_from: int
    king_to: int
    rook_from: int
    rook_to: int
    empty: Tuple[int, ...]
    safe: Tuple[int, ...]  # king start, transit, destination


_CASTLES: Dict[str, Tuple[_Castle, ...]] = {
    WHITE: (
        _Castle(MoveFlag.KING_CASTLE, "white_king", 60, 62, 63, 61, (61, 62), (60, 61, 62)),
        _Castle(MoveFlag.QUEEN_CASTLE, "white_queen", 60, 58, 56, 59, (59, 58, 57), (60, 59, 58)),
    ),
    BLACK: (
        _Castle(MoveFlag.KING_CASTLE, "black_king", 4, 6, 7, 5, (5, 6), (4, 5, 6)),
        _Castle(MoveFlag.QUEEN_CASTLE, "black_queen", 4, 2, 0, 3, (3, 2, 1), (4, 3, 2)),
    ),
}


@dataclass(frozen=True)
class Snapshot:
    """Complete prior state saved by ``make_move`` for exact restoration."""

    squares: Tuple[Optional[Piece], ...]
    side_to_move: str
    castling: CastlingRights
    ep_square: Optional[int]
    halfmove_clock: int
    fullmove_number: int
    move: Move
    logged: bool


@dataclass
class Board:
    """Mailbox position with make/undo, legal move generation and FEN I/O.

    Notes:
    - Squares are 0..63 with 0 = a8 and 63 = h1 (rank-major from the top).
    - ``history`` is the move log of user-applied moves; the undo stack also
      covers moves made internally (legality filter, search).
    """

    squares: List[Optional[Piece]]
    side_to_move: str  # 'w' or 'b'
    castling: CastlingRights
    ep_square: Optional[int]  # square index or None
    halfmove_clock: int
    fullmove_number: int
    history: List[Move] = field(default_factory=list)
    _undo: List[Snapshot] = field(default_factory=list, repr=False)

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string with six whitespace-separated fields.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, side to move, castling
                rights, en passant square, or move counters.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        squares: List[Optional[Piece]] = [None] * 64
        for rank_idx, rank in enumerate(ranks):  # FEN lists rank 8 first, as does our layout
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    squares[rank_idx * 8 + file_idx] = Piece.from_char(ch)
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")

        if stm not in (WHITE, BLACK):
            raise ValueError("side to move must be 'w' or 'b'")

        rights = CastlingRights.from_fen(castling)

        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            # ep target must sit on rank 3 or 6
            if _rank(ep_square) not in (2, 5):
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        return cls(
            squares=squares,
            side_to_move=stm,
            castling=rights,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )

    def load(self, fen: str) -> bool:
        """Replace this board's state with ``fen``.

        Returns:
            bool: ``False`` (state untouched) when ``fen`` is malformed.
        """
        try:
            parsed = Board.from_fen(fen)
        except ValueError:
            return False
        self.squares[:] = parsed.squares
        self.side_to_move = parsed.side_to_move
        self.castling = parsed.castling
        self.ep_square = parsed.ep_square
        self.halfmove_clock = parsed.halfmove_clock
        self.fullmove_number = parsed.fullmove_number
        self.history.clear()
        self._undo.clear()
        return True

    def reset(self) -> None:
        self.load(STARTPOS_FEN)

    def copy(self) -> "Board":
        """Independent copy, safe to mutate from another worker."""
        return Board(
            squares=list(self.squares),
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            history=list(self.history),
            _undo=list(self._undo),
        )

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for rank_idx in range(8):
            run = 0
            row = []
            for file_idx in range(8):
                piece = self.squares[rank_idx * 8 + file_idx]
                if piece is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(str(piece))
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)

        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move} {self.castling.to_fen()} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    # --- Queries ---
    def piece_at(self, square: Union[int, str]) -> Optional[Piece]:
        if isinstance(square, str):
            idx = parse_square(square)
            if idx is None:
                return None
            square = idx
        if square < 0 or square > 63:
            return None
        return self.squares[square]

    def king_square(self, color: str) -> Optional[int]:
        try:
            return self.squares.index(Piece(KING, color))
        except ValueError:
            return None

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    # --- Move generation ---
    def generate_pseudo_moves(self) -> List[Move]:
        """Moves that follow piece movement rules, ignoring own-king safety."""
        moves: List[Move] = []
        stm = self.side_to_move
        for sq, piece in enumerate(self.squares):
            if piece is None or piece.color != stm:
                continue
            if piece.type == PAWN:
                self._pawn_moves(sq, piece, moves)
            elif piece.type == KNIGHT:
                self._step_moves(sq, piece, KNIGHT_OFFSETS, 2, moves)
            elif piece.type == KING:
                self._step_moves(sq, piece, KING_OFFSETS, 1, moves)
                self._castling_moves(sq, piece, moves)
            else:
                self._slide_moves(sq, piece, SLIDER_OFFSETS[piece.type], moves)
        return moves

    def generate_legal_moves(self) -> List[Move]:
        """Return legal moves for the side to move.

        Each pseudo-legal move is made, the mover's king tested, and the move
        undone again whatever the outcome.
        """
        mover = self.side_to_move
        legal: List[Move] = []
        for mv in self.generate_pseudo_moves():
            self.make_move(mv)
            try:
                if not self.in_check(mover):
                    legal.append(mv)
            finally:
                self.undo()
        return legal

    def _pawn_moves(self, from_sq: int, piece: Piece, moves: List[Move]) -> None:
        color = piece.color
        step = -8 if color == WHITE else 8
        start_rank = 6 if color == WHITE else 1
        promo_rank = 0 if color == WHITE else 7

        one = from_sq + step
        if 0 <= one < 64 and self.squares[one] is None:
            if _rank(one) == promo_rank:
                for promo in PROMOTION_PIECES:
                    moves.append(Move(color, from_sq, one, PAWN, None, MoveFlag.PROMOTION, promo))
            else:
                moves.append(Move(color, from_sq, one, PAWN))
                two = one + step
                if _rank(from_sq) == start_rank and self.squares[two] is None:
                    moves.append(Move(color, from_sq, two, PAWN, None, MoveFlag.DOUBLE_PAWN_PUSH))

        for df in (-1, 1):
            target = one + df
            if not (0 <= target < 64) or abs(_file(target) - _file(from_sq)) != 1:
                continue
            occupant = self.squares[target]
            if occupant is not None:
                if occupant.color == color:
                    continue
                if _rank(target) == promo_rank:
                    for promo in PROMOTION_PIECES:
                        moves.append(
                            Move(
                                color,
                                from_sq,
                                target,
                                PAWN,
                                occupant.type,
                                MoveFlag.PROMOTION | MoveFlag.CAPTURE,
                                promo,
                            )
                        )
                else:
                    moves.append(Move(color, from_sq, target, PAWN, occupant.type, MoveFlag.CAPTURE))
            elif target == self.ep_square:
                # The double-stepped pawn stands just behind the target square
                if self.squares[target - step] == Piece(PAWN, opposite(color)):
                    moves.append(
                        Move(
                            color,
                            from_sq,
                            target,
                            PAWN,
                            PAWN,
                            MoveFlag.EN_PASSANT | MoveFlag.CAPTURE,
                        )
                    )

    def _step_moves(
        self,
        from_sq: int,
        piece: Piece,
        offsets: Sequence[int],
        max_file_delta: int,
        moves: List[Move],
    ) -> None:
        for off in offsets:
            to_sq = from_sq + off
            if not (0 <= to_sq < 64) or abs(_file(to_sq) - _file(from_sq)) > max_file_delta:
                continue
            occupant = self.squares[to_sq]
            if occupant is None:
                moves.append(Move(piece.color, from_sq, to_sq, piece.type))
            elif occupant.color != piece.color:
                moves.append(
                    Move(piece.color, from_sq, to_sq, piece.type, occupant.type, MoveFlag.CAPTURE)
                )

    def _slide_moves(
        self, from_sq: int, piece: Piece, offsets: Sequence[int], moves: List[Move]
    ) -> None:
        for off in offsets:
            prev, to_sq = from_sq, from_sq + off
            while 0 <= to_sq < 64 and abs(_file(to_sq) - _file(prev)) <= 1:
                occupant = self.squares[to_sq]
                if occupant is None:
                    moves.append(Move(piece.color, from_sq, to_sq, piece.type))
                else:
                    if occupant.color != piece.color:
                        moves.append(
                            Move(
                                piece.color,
                                from_sq,
                                to_sq,
                                piece.type,
                                occupant.type,
                                MoveFlag.CAPTURE,
                            )
                        )
                    break
                prev, to_sq = to_sq, to_sq + off

    def _castling_moves(self, from_sq: int, piece: Piece, moves: List[Move]) -> None:
        enemy = opposite(piece.color)
        for c in _CASTLES[piece.color]:
            if not getattr(self.castling, c.right) or from_sq != c.king_from:
                continue
            if self.squares[c.rook_from] != Piece(ROOK, piece.color):
                continue
            if any(self.squares[sq] is not None for sq in c.empty):
                continue
            if any(self.is_square_attacked(sq, enemy) for sq in c.safe):
                continue
            moves.append(Move(piece.color, from_sq, c.king_to, KING, None, c.flag))

    # --- Make / undo ---
    def make_move(self, move: Move, log: bool = False) -> None:
        """Apply ``move`` in place, saving a snapshot for ``undo``.

        Args:
            move (Move): A move generated from this exact position.
            log (bool): Also append the move to ``history``.

        Raises:
            ValueError: If the origin square holds no piece.
        """
        moving = self.squares[move.from_sq]
        if moving is None:
            raise ValueError("no piece to move from from_sq")

        self._undo.append(
            Snapshot(
                squares=tuple(self.squares),
                side_to_move=self.side_to_move,
                castling=self.castling,
                ep_square=self.ep_square,
                halfmove_clock=self.halfmove_clock,
                fullmove_number=self.fullmove_number,
                move=move,
                logged=log,
            )
        )
        if log:
            self.history.append(move)

        self.squares[move.from_sq] = None
        if move.flags & MoveFlag.EN_PASSANT:
            cap_sq = move.to_sq + 8 if moving.color == WHITE else move.to_sq - 8
            captured = self.squares[cap_sq]
            self.squares[cap_sq] = None
        else:
            captured = self.squares[move.to_sq]
        self.squares[move.to_sq] = Piece(move.promotion, moving.color) if move.promotion else moving

        if move.flags & (MoveFlag.KING_CASTLE | MoveFlag.QUEEN_CASTLE):
            for c in _CASTLES[moving.color]:
                if c.flag & move.flags:
                    self.squares[c.rook_to] = self.squares[c.rook_from]
                    self.squares[c.rook_from] = None

        # Castling rights: king moves, rook leaves its corner, rook captured on its corner
        rights = self.castling
        if moving.type == KING:
            rights = rights.without_color(moving.color)
        elif moving.type == ROOK:
            rights = rights.without_corner(move.from_sq, moving.color)
        if captured is not None and captured.type == ROOK:
            rights = rights.without_corner(move.to_sq, captured.color)
        self.castling = rights

        if move.flags & MoveFlag.DOUBLE_PAWN_PUSH:
            self.ep_square = (move.from_sq + move.to_sq) // 2
        else:
            self.ep_square = None

        if moving.type == PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if moving.color == BLACK:
            self.fullmove_number += 1
        self.side_to_move = opposite(self.side_to_move)

    def undo(self) -> Optional[Move]:
        """Restore the state saved by the most recent ``make_move``.

        Returns:
            Optional[Move]: The undone move, or ``None`` with nothing to undo.
        """
        if not self._undo:
            return None
        snap = self._undo.pop()
        self.squares[:] = snap.squares
        self.side_to_move = snap.side_to_move
        self.castling = snap.castling
        self.ep_square = snap.ep_square
        self.halfmove_clock = snap.halfmove_clock
        self.fullmove_number = snap.fullmove_number
        if snap.logged and self.history:
            self.history.pop()
        return snap.move

    def move(self, value: Union[str, Mapping[str, Any]]) -> Optional[Move]:
        """Apply a user move given as ``"e2e4"``/``"e7e8q"`` or ``{from, to, promotion}``.

        Returns:
            Optional[Move]: The applied move, or ``None`` if the input does not
                match any legal move (state unchanged).
        """
        req = parse_move_request(value)
        if req is None:
            return None
        for mv in self.generate_legal_moves():
            if mv.from_sq != req.from_sq or mv.to_sq != req.to_sq:
                continue
            if mv.promotion is not None and mv.promotion != req.promotion:
                continue
            self.make_move(mv, log=True)
            return mv
        return None

    # --- Attacks and status ---
    def is_square_attacked(self, sq: int, by_color: str) -> bool:
        """Return True if any piece of ``by_color`` attacks ``sq``."""
        squares = self.squares
        f = _file(sq)

        # Pawns attack toward the far side, so look one rank back from their view
        pawn = Piece(PAWN, by_color)
        back = 8 if by_color == WHITE else -8
        for df in (-1, 1):
            o = sq + back + df
            if 0 <= o < 64 and abs(_file(o) - f) == 1 and squares[o] == pawn:
                return True

        knight = Piece(KNIGHT, by_color)
        for off in KNIGHT_OFFSETS:
            o = sq + off
            if 0 <= o < 64 and abs(_file(o) - f) <= 2 and squares[o] == knight:
                return True

        king = Piece(KING, by_color)
        for off in KING_OFFSETS:
            o = sq + off
            if 0 <= o < 64 and abs(_file(o) - f) <= 1 and squares[o] == king:
                return True

        for offsets, kinds in ((BISHOP_OFFSETS, (BISHOP, QUEEN)), (ROOK_OFFSETS, (ROOK, QUEEN))):
            for off in offsets:
                prev, o = sq, sq + off
                while 0 <= o < 64 and abs(_file(o) - _file(prev)) <= 1:
                    occupant = squares[o]
                    if occupant is not None:
                        if occupant.color == by_color and occupant.type in kinds:
                            return True
                        break
                    prev, o = o, o + off
        return False

    def in_check(self, side: Optional[str] = None) -> bool:
        """Return True if ``side`` (default: side to move) is in check."""
        s = self.side_to_move if side is None else side
        if s not in (WHITE, BLACK):
            raise ValueError("side must be 'w' or 'b'")
        ks = self.king_square(s)
        if ks is None:
            return False
        return self.is_square_attacked(ks, opposite(s))

    def has_legal_moves(self) -> bool:
        return bool(self.generate_legal_moves())

    def is_checkmate(self) -> bool:
        return self.in_check() and not self.has_legal_moves()

    def is_stalemate(self) -> bool:
        return not self.in_check() and not self.has_legal_moves()

    def is_game_over(self) -> bool:
        # Repetition and the fifty-move rule are not terminal here
        return not self.has_legal_moves()
