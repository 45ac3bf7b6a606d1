"""
오류 응답 변환

Ledger 오류를 HTTP 상태 코드와 {"error": {"message", "code"}} 본문으로 변환.
"""

import logging
from decimal import Decimal, InvalidOperation

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.ledger.errors import (
    InsufficientBalanceError,
    InvalidStateError,
    LedgerError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def status_for(error: LedgerError) -> int:
    """오류 종류별 HTTP 상태 코드"""
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, (InvalidStateError, InsufficientBalanceError)):
        return 400
    # StorageFailureError 포함
    return 500


def error_body(message: str, code: str) -> dict[str, dict[str, str]]:
    return {"error": {"message": message, "code": code}}


def validation_error(message: str) -> HTTPException:
    """400 VALIDATION_ERROR"""
    return HTTPException(
        status_code=400,
        detail={"message": message, "code": "VALIDATION_ERROR"},
    )


def parse_amount(value: str) -> Decimal:
    """문자열 금액 파싱

    Raises:
        HTTPException: 숫자가 아니면 400
    """
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise validation_error(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise validation_error(f"Invalid amount: {value!r}")
    return amount


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}",
            extra={"code": exc.code},
        )
    return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.code))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # detail이 {"message", "code"}면 그대로 감싸고, 문자열이면 HTTP_ERROR
    if isinstance(exc.detail, dict) and "message" in exc.detail:
        content = {"error": exc.detail}
    else:
        content = error_body(str(exc.detail), "HTTP_ERROR")
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{location}: {first.get('msg', 'invalid request')}" if location else "invalid request"
    return JSONResponse(status_code=422, content=error_body(message, "VALIDATION_ERROR"))


def register_exception_handlers(app: FastAPI) -> None:
    """앱에 오류 핸들러 등록"""
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
