"""Boundary error normalizer.

Every failure that escapes a route is rendered as

    {statusCode, timestamp, path, method, message, error[, stack]}

`stack` and the text of unexpected exceptions are only exposed outside production.
"""

from __future__ import annotations

import logging
import re
import traceback
from http import HTTPStatus
from typing import Any, Dict, List, Mapping, Optional, Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio_api.config import Config
from portfolio_api.errors import AppError, Unauthenticated
from portfolio_api.schemas import error_messages
from portfolio_api.util.time import utcnow_iso

log = logging.getLogger("portfolio.errors")

# Paths typically requested by vulnerability scanners and bots.
SUSPICIOUS_PATH_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/\.env",
        r"/\.git",
        r"/\.aws",
        r"\.ds_store",
        r"wp-admin",
        r"wp-login",
        r"phpmyadmin",
        r"/cgi-bin",
        r"\.php\b",
        r"\.sql\b",
    )
]

Message = Union[str, List[str]]


def is_suspicious_path(path: str) -> bool:
    return any(p.search(path or "") for p in SUSPICIOUS_PATH_PATTERNS)


def _phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


def render_error(
    request: Request,
    exc: BaseException,
    *,
    cfg: Config,
    status: int,
    message: Message,
    error: str,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    method = request.method
    path = request.url.path

    if is_suspicious_path(path):
        log.warning("Blocked suspicious request: %s %s", method, path)
    else:
        log.error(
            "%s %s - Status: %s",
            method,
            path,
            status,
            exc_info=exc if status >= 500 else None,
        )

    body: Dict[str, Any] = {
        "statusCode": status,
        "timestamp": utcnow_iso(),
        "path": path,
        "method": method,
        "message": message,
        "error": error,
    }
    if not cfg.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    return JSONResponse(status_code=status, content=body, headers=dict(headers or {}))


def register_error_handlers(app: FastAPI, cfg: Config) -> None:
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return render_error(
            request,
            exc,
            cfg=cfg,
            status=exc.status_code,
            message=exc.message,
            error=exc.error,
            headers=headers,
        )

    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return render_error(
            request,
            exc,
            cfg=cfg,
            status=exc.status_code,
            message=str(exc.detail),
            error=_phrase(exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return render_error(
            request,
            exc,
            cfg=cfg,
            status=400,
            message=error_messages(list(exc.errors())),
            error="Bad Request",
        )

    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        if cfg.is_production:
            message = "Internal server error"
        else:
            message = str(exc) or "Unknown error"
        return render_error(request, exc, cfg=cfg, status=500, message=message, error="Internal Server Error")

    app.add_exception_handler(AppError, _app_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled)
