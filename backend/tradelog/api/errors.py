"""Map journal errors onto HTTP responses."""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from tradelog.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    TradeLogError,
    UpstreamUnavailableError,
    ValidationError,
)

STATUS_CODES = {
    ValidationError: 400,
    ConflictError: 409,
    NotFoundError: 404,
    AuthenticationError: 401,
    UpstreamUnavailableError: 502,
}


def status_code_for(error: TradeLogError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


async def tradelog_error_handler(request: Request, exc: TradeLogError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TradeLogError, tradelog_error_handler)
