from __future__ import annotations

import pytest

from chess_assist.cli.main import main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DEFAULT_DEPTH", "MAX_DEPTH", "LOG_LEVEL"):
        monkeypatch.delenv(f"CHESS_ASSIST_{name}", raising=False)


def test_analyze_prints_best_move(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["analyze", "--fen", "4k3/8/8/3q4/8/8/8/3QK3 w - - 0 1", "--depth", "2"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "bestmove d1d5 (d1xd5)" in out
    assert "depth=2" in out


def test_analyze_terminal_position(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["analyze", "--fen", "7k/6Q1/6K1/8/8/8/8/8 b - - 0 1", "--depth", "1"])
    assert rc == 0
    assert "No move found" in capsys.readouterr().out


def test_analyze_bad_fen(capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["analyze", "--fen", "garbage", "--depth", "1"])
    assert rc == 2
    assert "invalid FEN" in capsys.readouterr().err
