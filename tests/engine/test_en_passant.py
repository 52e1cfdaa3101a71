from __future__ import annotations

from chess_assist.engine.board import Board
from chess_assist.engine.move import MoveFlag, str_to_square
from chess_assist.engine.piece import BLACK, PAWN, WHITE, Piece


def moves_set(b: Board) -> set[str]:
    return {m.to_uci() for m in b.generate_legal_moves()}


def test_white_en_passant_generation_and_apply() -> None:
    # Black just played e7e5 → ep target e6; white pawn on d5 can capture e6 ep
    fen = "4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1"
    b = Board.from_fen(fen)
    mv = next(m for m in b.generate_legal_moves() if m.to_uci() == "d5e6")
    assert mv.flags & MoveFlag.EN_PASSANT
    assert mv.flags & MoveFlag.CAPTURE
    assert mv.captured == PAWN
    assert mv.to_display() == "d5xe6"

    b.make_move(mv)
    assert b.piece_at("e6") == Piece(PAWN, WHITE)
    assert b.piece_at("d5") is None
    assert b.piece_at("e5") is None
    assert b.halfmove_clock == 0
    b.undo()
    assert b.to_fen() == fen


def test_black_en_passant_generation_and_apply() -> None:
    # White just played e2e4 → ep target e3; black pawn on d4 can capture e3 ep
    fen = "4k3/8/8/8/3pP3/8/8/4K3 b - e3 0 1"
    b = Board.from_fen(fen)
    assert "d4e3" in moves_set(b)
    b.move("d4e3")
    assert b.piece_at("e3") == Piece(PAWN, BLACK)
    assert b.piece_at("e4") is None
    assert b.piece_at("d4") is None


def test_double_push_sets_target_on_skipped_square() -> None:
    b = Board.startpos()
    b.move("e2e4")
    assert b.ep_square == str_to_square("e3")
    b.move("g8f6")
    assert b.ep_square is None


def test_en_passant_only_on_the_next_move() -> None:
    b = Board.from_fen("4k3/3p4/8/4P3/8/8/8/4K3 b - - 0 1")
    b.move("d7d5")
    assert b.ep_square == str_to_square("d6")
    assert "e5d6" in moves_set(b)

    # White declines; after another black move the chance is gone
    b.move("e1e2")
    b.move("e8f7")
    assert b.ep_square is None
    assert "e5d6" not in moves_set(b)


def test_en_passant_exposing_own_king_is_illegal() -> None:
    # Capturing e.p. would clear the fifth rank between the white king and black rook
    b = Board.from_fen("8/8/8/KPp4r/8/8/8/7k w - c6 0 1")
    ms = moves_set(b)
    assert "b5c6" not in ms
    assert "b5b6" in ms
