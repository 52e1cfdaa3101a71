from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field

from .error import (
    DepthOutOfRangeError,
    GameNotFoundError,
    IllegalMoveError,
    InvalidPositionError,
    NothingToUndoError,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import InMemorySessionStore
from ...config import Config, load_config
from ...engine.board import Board
from ...engine.perft import perft as perft_nodes
from ...search.service import SearchService


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="FEN string (default: startpos)")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class StructuredMove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_square: str = Field(..., alias="from", description="Origin square, e.g. e7")
    to_square: str = Field(..., alias="to", description="Destination square, e.g. e8")
    promotion: Optional[str] = Field(default=None, description="q, r, b or n")


class MoveRequest(BaseModel):
    move: Union[str, StructuredMove] = Field(
        ..., description="Coordinate text (e2e4, e7e8q) or {from, to, promotion}"
    )


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1)


class AnalyzeRequest(BaseModel):
    fen: str = Field(..., description="FEN string")
    depth: Optional[int] = Field(default=None, ge=1)
    request_id: Optional[str] = Field(default=None, max_length=128)


class PerftRequest(BaseModel):
    fen: str = Field(..., description="FEN string")
    depth: int = Field(default=1, ge=0, le=4)


class GameState(BaseModel):
    game_id: str
    fen: str
    side_to_move: str
    legal_moves: list[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    game_over: bool
    last_move: Optional[str]
    move_history: list[str]


def create_app(config: Optional[Config] = None) -> FastAPI:
    config = config or load_config()
    app = FastAPI(title="Chess Assist API", version="0.1.0")

    logging.basicConfig(level=config.server.log_level)

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    service = SearchService()
    app.state.config = config
    app.state.store = store

    def resolve_depth(requested: Optional[int]) -> int:
        depth = requested or config.search.default_depth
        if depth > config.search.max_depth:
            raise DepthOutOfRangeError(depth, config.search.max_depth)
        return depth

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        if req is not None and req.fen:
            board = _parse_board(req.fen)
        else:
            board = Board.startpos()
        game_id = store.create(board)
        logger.info("game created", extra={"game_id": game_id})
        return CreateGameResponse(game_id=game_id, fen=board.to_fen())

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        with store.lease(game_id) as board:
            return _game_state(game_id, _require(board))

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, str]:
        with store.lease(game_id) as board:
            _require(board)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.post("/api/games/{game_id}/position", response_model=GameState)
    def set_position(game_id: str, req: SetPositionRequest) -> GameState:
        with store.lease(game_id) as board:
            board = _require(board)
            if not board.load(req.fen):
                raise InvalidPositionError()
            return _game_state(game_id, board)

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        value: Union[str, Dict[str, Any]]
        if isinstance(req.move, StructuredMove):
            value = req.move.model_dump(by_alias=True)
        else:
            value = req.move
        with store.lease(game_id) as board:
            board = _require(board)
            if board.move(value) is None:
                raise IllegalMoveError(value)
            return _game_state(game_id, board)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        with store.lease(game_id) as board:
            board = _require(board)
            if not board.history:
                raise NothingToUndoError()
            board.undo()
            return _game_state(game_id, board)

    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: Optional[SearchRequest] = None) -> Dict[str, Any]:
        depth = resolve_depth(req.depth if req else None)
        with store.lease(game_id) as board:
            board = _require(board)
            res = service.search(board, depth=depth)
            return {"fen": board.to_fen(), **res.to_dict()}

    @app.post("/api/analyze")
    def analyze(req: AnalyzeRequest, request: Request) -> Dict[str, Any]:
        depth = resolve_depth(req.depth)
        board = _parse_board(req.fen)
        res = service.search(board, depth=depth)
        request_id = req.request_id or getattr(request.state, "request_id", "")
        logger.info(
            "analysis",
            extra={"request_id": request_id, "depth": depth, "nodes": res.nodes},
        )
        return {"fen": req.fen, "request_id": request_id, **res.to_dict()}

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, Any]:
        board = _parse_board(req.fen)
        return {"nodes": perft_nodes(board, req.depth), "depth": req.depth}

    return app


def _parse_board(fen: str) -> Board:
    try:
        return Board.from_fen(fen)
    except ValueError as e:
        raise InvalidPositionError(f"invalid FEN: {e}") from e


def _require(board: Optional[Board]) -> Board:
    if board is None:
        raise GameNotFoundError()
    return board


def _game_state(game_id: str, board: Board) -> GameState:
    legal = board.generate_legal_moves()
    in_check = board.in_check()
    history = [m.to_uci() for m in board.history]
    return GameState(
        game_id=game_id,
        fen=board.to_fen(),
        side_to_move=board.side_to_move,
        legal_moves=[m.to_uci() for m in legal],
        in_check=in_check,
        checkmate=in_check and not legal,
        stalemate=not in_check and not legal,
        game_over=not legal,
        last_move=history[-1] if history else None,
        move_history=history,
    )


# Default app for non-factory servers
app = create_app()
