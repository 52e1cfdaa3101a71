from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from chess_assist.engine.board import Board
from chess_assist.engine.move import Move, move_to_display
from chess_assist.engine.piece import WHITE
from chess_assist.eval import evaluate


logger = logging.getLogger(__name__)

INF = 10_000_000


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: int  # root-relative: higher is better for the side to move at the root
    line: List[Move]
    nodes: int
    depth: int
    time_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "move": self.best_move.to_uci() if self.best_move else None,
            "display": move_to_display(self.best_move),
            "score": self.score,
            "line": [m.to_uci() for m in self.line],
            "line_display": [m.to_display() for m in self.line],
            "nodes": self.nodes,
            "depth": self.depth,
            "time_ms": self.time_ms,
        }


class SearchService:
    """Fixed-depth minimax with alpha-beta pruning.

    One board is shared by the whole tree walk: every child is made, searched
    and undone, so the board is unchanged when ``search`` returns. Moves are
    tried in generation order; there is no transposition table, quiescence or
    move ordering.
    """

    def search(
        self,
        board: Board,
        depth: int = 2,
        *,
        enable_pruning: bool = True,
    ) -> SearchResult:
        if depth < 0:
            raise ValueError("depth must be >= 0")
        root_color = board.side_to_move
        nodes = 0
        start = time.perf_counter()

        def leaf_score() -> int:
            base = evaluate(board)
            return base if root_color == WHITE else -base

        def minimax(d: int, alpha: int, beta: int) -> Tuple[int, Optional[Move], List[Move]]:
            nonlocal nodes
            nodes += 1

            # Horizon or terminal (mate/stalemate) leaf
            if d == 0:
                return leaf_score(), None, []
            moves = board.generate_legal_moves()
            if not moves:
                return leaf_score(), None, []

            maximizing = board.side_to_move == root_color
            best_score = -INF if maximizing else INF
            best_move: Optional[Move] = None
            best_line: List[Move] = []

            for mv in moves:
                board.make_move(mv)
                try:
                    score, _, line = minimax(d - 1, alpha, beta)
                finally:
                    board.undo()

                if maximizing:
                    if score > best_score:
                        best_score, best_move, best_line = score, mv, [mv] + line
                    alpha = max(alpha, best_score)
                else:
                    if score < best_score:
                        best_score, best_move, best_line = score, mv, [mv] + line
                    beta = min(beta, best_score)
                if enable_pruning and beta <= alpha:
                    break

            return best_score, best_move, best_line

        score, best_move, line = minimax(depth, -INF, INF)
        time_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "search complete",
            extra={
                "depth": depth,
                "nodes": nodes,
                "score": score,
                "best_move": best_move.to_uci() if best_move else None,
                "time_ms": time_ms,
            },
        )
        return SearchResult(
            best_move=best_move,
            score=score,
            line=line,
            nodes=nodes,
            depth=depth,
            time_ms=time_ms,
        )
