from __future__ import annotations

import pytest

from chess_assist.engine.board import Board


FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


def test_startpos_is_not_terminal() -> None:
    b = Board.startpos()
    assert not b.in_check()
    assert not b.is_checkmate()
    assert not b.is_stalemate()
    assert not b.is_game_over()
    assert b.has_legal_moves()


def test_fools_mate_is_checkmate() -> None:
    b = Board.from_fen(FOOLS_MATE)
    assert b.in_check()
    assert b.is_checkmate()
    assert not b.is_stalemate()
    assert b.is_game_over()
    assert b.generate_legal_moves() == []


def test_queen_mate_on_back_rank() -> None:
    b = Board.from_fen("7k/6Q1/6K1/8/8/8/8/8 b - - 0 1")
    assert b.is_checkmate()


@pytest.mark.parametrize(
    "fen",
    [
        "7k/7P/6K1/8/8/8/8/8 b - - 0 1",
        "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1",
    ],
)
def test_stalemate(fen: str) -> None:
    b = Board.from_fen(fen)
    assert not b.in_check()
    assert b.is_stalemate()
    assert not b.is_checkmate()
    assert b.is_game_over()


def test_in_check_for_either_side() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/4K2r w - - 0 1")
    assert b.in_check()
    assert b.in_check("w")
    assert not b.in_check("b")
    with pytest.raises(ValueError):
        b.in_check("x")


def test_missing_king_is_never_in_check() -> None:
    b = Board.from_fen("8/8/8/8/8/8/8/4K2r b - - 0 1")
    assert not b.in_check()


def test_pawn_attacks_point_forward() -> None:
    b = Board.from_fen("4k3/8/8/8/8/3p4/8/4K3 w - - 0 1")
    # Black pawn on d3 attacks c2 and e2, not c4/e4
    assert not b.is_square_attacked(51, "b")  # d2
    assert b.is_square_attacked(52, "b")  # e2
    assert b.is_square_attacked(50, "b")  # c2
    assert not b.is_square_attacked(36, "b")  # e4
