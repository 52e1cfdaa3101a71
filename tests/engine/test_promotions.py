from __future__ import annotations

from chess_assist.engine.board import Board
from chess_assist.engine.move import MoveFlag
from chess_assist.engine.piece import KNIGHT, PAWN, QUEEN, ROOK, BLACK, WHITE, Piece


def _uci_set(moves):
    return set(m.to_uci() for m in moves)


def test_white_pawn_push_promotions() -> None:
    b = Board.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    ms = b.generate_legal_moves()
    assert _uci_set(ms) >= {"e7e8q", "e7e8r", "e7e8b", "e7e8n"}
    # No non-promoting push to the back rank
    assert "e7e8" not in _uci_set(ms)
    promos = [m for m in ms if m.piece == PAWN]
    assert len(promos) == 4
    assert all(m.flags == MoveFlag.PROMOTION for m in promos)


def test_white_pawn_capture_promotion() -> None:
    b = Board.from_fen("3rk3/4P3/8/8/8/8/8/4K3 w - - 0 1")
    ms = [m for m in b.generate_legal_moves() if m.to_uci().startswith("e7d8")]
    assert _uci_set(ms) == {"e7d8q", "e7d8r", "e7d8b", "e7d8n"}
    assert all(m.flags & MoveFlag.CAPTURE and m.flags & MoveFlag.PROMOTION for m in ms)
    assert all(m.captured == ROOK for m in ms)


def test_black_pawn_push_promotions() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/3p4/4K3 b - - 0 1")
    ms = b.generate_legal_moves()
    assert _uci_set(ms) >= {"d2d1q", "d2d1r", "d2d1b", "d2d1n"}


def test_promotion_apply_and_undo() -> None:
    fen = "3rk3/4P3/8/8/8/8/8/4K3 w - - 0 1"
    b = Board.from_fen(fen)
    mv = b.move("e7d8n")
    assert mv is not None and mv.promotion == KNIGHT
    assert b.piece_at("d8") == Piece(KNIGHT, WHITE)
    assert b.piece_at("e7") is None
    b.undo()
    assert b.to_fen() == fen
    assert b.piece_at("d8") == Piece(ROOK, BLACK)


def test_promotion_requires_piece_choice() -> None:
    b = Board.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    fen = b.to_fen()
    assert b.move("e7e8") is None
    assert b.to_fen() == fen
    mv = b.move({"from": "e7", "to": "e8", "promotion": "q"})
    assert mv is not None
    assert b.piece_at("e8") == Piece(QUEEN, WHITE)
