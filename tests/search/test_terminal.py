from __future__ import annotations

import pytest

from chess_assist.engine.board import Board
from chess_assist.eval import evaluate
from chess_assist.search.service import SearchService


FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


def test_checkmated_root_returns_no_move() -> None:
    board = Board.from_fen(FOOLS_MATE)
    res = SearchService().search(board, depth=3)
    assert res.best_move is None
    assert res.line == []
    assert res.nodes == 1
    assert res.score == evaluate(board)
    assert res.to_dict()["display"] == "No move found"


def test_stalemated_black_root_is_oriented_to_black() -> None:
    board = Board.from_fen("7k/7P/6K1/8/8/8/8/8 b - - 0 1")
    res = SearchService().search(board, depth=2)
    assert res.best_move is None
    assert res.score == -evaluate(board)


@pytest.mark.parametrize("side", ["w", "b"])
def test_depth_zero_is_static_eval(side: str) -> None:
    board = Board.from_fen(f"4k3/8/8/3q4/8/8/8/3QK3 {side} - - 0 1")
    res = SearchService().search(board, depth=0)
    assert res.best_move is None
    assert res.line == []
    assert res.nodes == 1
    expected = evaluate(board)
    assert res.score == (expected if side == "w" else -expected)
