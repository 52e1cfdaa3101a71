from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from ..config import load_config
from ..engine.board import STARTPOS_FEN, Board
from ..search.service import SearchService


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chess-assist", description="Chess move assistant")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None, help="Bind host (default: config)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: config)")

    analyze = sub.add_parser("analyze", help="Recommend a move for a position")
    analyze.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    analyze.add_argument("--depth", type=int, default=None, help="Search depth (default: config)")
    return parser


def _analyze(fen: str, depth: int) -> int:
    try:
        board = Board.from_fen(fen)
    except ValueError as e:
        print(f"error: invalid FEN: {e}", file=sys.stderr)
        return 2
    res = SearchService().search(board, depth=depth)
    data = res.to_dict()
    print(f"bestmove {data['move'] or '(none)'} ({data['display']})")
    print(f"score {res.score} depth={res.depth} nodes={res.nodes} time_ms={res.time_ms}")
    print("line " + " ".join(data["line_display"]))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config()
    logging.basicConfig(level=config.server.log_level)

    if args.command == "serve":
        host = args.host or config.server.host
        port = args.port or config.server.port
        logger.info("starting server", extra={"host": host, "port": port})
        uvicorn.run(
            "chess_assist.protocol.http.app:create_app",
            factory=True,
            host=host,
            port=port,
        )
        return 0

    depth = config.search.default_depth if args.depth is None else args.depth
    if depth < 1:
        print("error: depth must be >= 1", file=sys.stderr)
        return 2
    return _analyze(args.fen, depth)


if __name__ == "__main__":
    sys.exit(main())
