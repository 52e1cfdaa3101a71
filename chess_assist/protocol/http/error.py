from __future__ import annotations

import logging
from typing import Any, Dict, Optional, cast

from fastapi import HTTPException as FastAPIHTTPException
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


logger = logging.getLogger(__name__)

UNPROCESSABLE = 422


class ApiError(FastAPIHTTPException):
    """HTTP error carrying a stable machine-readable ``code``."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "bad_request"

    def __init__(self, detail: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(status_code=status_code or self.status_code_default, detail=detail)


class InvalidPositionError(ApiError):
    code = "invalid_fen"

    def __init__(self, detail: str = "invalid FEN") -> None:
        super().__init__(detail)


class IllegalMoveError(ApiError):
    code = "illegal_move"

    def __init__(self, move: Any) -> None:
        super().__init__(f"illegal move: {move!r}")


class NothingToUndoError(ApiError):
    code = "nothing_to_undo"

    def __init__(self) -> None:
        super().__init__("no moves to undo")


class DepthOutOfRangeError(ApiError):
    code = "depth_out_of_range"

    def __init__(self, depth: int, max_depth: int) -> None:
        super().__init__(f"depth {depth} exceeds maximum of {max_depth}")


class GameNotFoundError(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self) -> None:
        super().__init__("game not found")


def error_envelope(
    *,
    code: str,
    message: str,
    err_type: str,
    request_id: str,
    field_errors: list[dict[str, str]] | None = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "type": err_type,
            "request_id": request_id,
        }
    }
    if field_errors:
        payload["error"]["field_errors"] = field_errors
    return payload


def _render_http_error(exc: FastAPIHTTPException, request_id: str) -> JSONResponse:
    status_code = exc.status_code
    code = exc.code if isinstance(exc, ApiError) else _status_to_code(status_code)
    payload = error_envelope(
        code=code,
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        err_type="client_error" if 400 <= status_code < 500 else "server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=payload)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    if isinstance(exc, FastAPIHTTPException):
        return _render_http_error(exc, request_id)
    return await exception_handler(request, exc)


async def exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    if isinstance(exc, FastAPIHTTPException):
        return _render_http_error(exc, request_id)
    logger.exception("Unhandled exception", extra={"request_id": request_id})
    payload = error_envelope(
        code="internal_error",
        message="Internal Server Error",
        err_type="server_error",
        request_id=request_id,
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "")
    errors = []
    rve = cast(RequestValidationError, exc)
    for e in rve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []) if p is not None)
        errors.append(
            {
                "field": loc,
                "code": e.get("type", "value_error"),
                "message": e.get("msg", "invalid value"),
            }
        )
    payload = error_envelope(
        code="unprocessable_entity",
        message="Validation error",
        err_type="client_error",
        request_id=request_id,
        field_errors=errors or None,
    )
    return JSONResponse(status_code=UNPROCESSABLE, content=payload)


def _status_to_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return "not_found"
    if status_code == status.HTTP_400_BAD_REQUEST:
        return "bad_request"
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return "method_not_allowed"
    if status_code == status.HTTP_409_CONFLICT:
        return "conflict"
    if status_code == UNPROCESSABLE:
        return "unprocessable_entity"
    if 500 <= status_code < 600:
        return "internal_error"
    return "error"
