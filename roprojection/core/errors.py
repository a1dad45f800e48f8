# roprojection/core/errors.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

__all__ = ["MembraneNotFoundError", "register_exception_handlers"]


class MembraneNotFoundError(LookupError):
    """Raised by library lookups (never by the projection engine)."""

    def __init__(self, membrane_id: str) -> None:
        super().__init__(membrane_id)
        self.membrane_id = membrane_id


def _problem(
    *,
    status_code: int,
    code: str,
    message: str,
    detail: Any | None = None,
) -> JSONResponse:
    """공통 에러 응답 포맷 (application/problem+json)."""
    payload: dict[str, Any] = {"code": code, "message": message}
    if detail is not None:
        payload["detail"] = detail

    return JSONResponse(
        status_code=status_code,
        content=payload,
        headers={"Content-Type": "application/problem+json"},
    )


def _convert_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")}
        for e in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """
    전역 예외 핸들러 등록.

    - RequestValidationError: 구조적으로 잘못된 입력 (422)
    - MembraneNotFoundError: 라이브러리에 없는 막 ID (404)
    - HTTPException: 일반 HTTP 에러
    - Exception: 그 외 모든 예외 (500)
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = _convert_validation_errors(exc)
        logger.info(
            "Request validation failed: %s %s (%d errors)",
            request.method,
            request.url.path,
            len(errors),
        )
        return _problem(
            status_code=422,
            code="INVALID_INPUT",
            message="Input validation failed",
            detail=errors,
        )

    @app.exception_handler(MembraneNotFoundError)
    async def membrane_not_found_handler(
        request: Request,
        exc: MembraneNotFoundError,
    ) -> JSONResponse:
        logger.info("Unknown membrane requested: %s", exc.membrane_id)
        return _problem(
            status_code=404,
            code="MEMBRANE_NOT_FOUND",
            message=f"Membrane '{exc.membrane_id}' is not in the library",
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        logger.warning(
            "HTTPException: %s %s -> %d (%s)",
            request.method,
            request.url.path,
            exc.status_code,
            exc.detail,
        )
        return _problem(
            status_code=exc.status_code,
            code="HTTP_ERROR",
            message=str(exc.detail) if exc.detail else "HTTP error",
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception: %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return _problem(
            status_code=500,
            code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred.",
        )
