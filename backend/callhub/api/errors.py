"""Global error handlers ensuring request_id is included in JSON responses."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from callhub.moderation.domain.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PipelineError,
    StoreError,
    ValidationError,
)
from callhub.obs import logging as obs_logging

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/api/admin/"


def get_request_id(request: Request, default: str = "unknown") -> str:
    rid = getattr(request.state, "request_id", None) or obs_logging.current_request_id()
    return rid or default


def pipeline_error_payload(request: Request, exc: PipelineError) -> dict[str, Any]:
    detail = exc.reason
    if isinstance(exc, NotFoundError) and request.url.path.startswith(ADMIN_PREFIX):
        # the record was decided by someone else first
        detail = "already_resolved"
    payload: dict[str, Any] = {"detail": detail, "request_id": get_request_id(request)}
    if isinstance(exc, ValidationError):
        payload["field"] = exc.field
    if isinstance(exc, InvalidTransitionError):
        payload["state"] = exc.state
    if isinstance(exc, (StoreError, ConflictError)) and exc.cause:
        payload["cause"] = exc.cause
    return payload


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PipelineError)
    async def pipeline_exc_handler(request: Request, exc: PipelineError):  # type: ignore[override]
        if isinstance(exc, StoreError):
            logger.error(
                "store error surfaced to caller",
                extra={"collection": exc.collection, "op": exc.op, "cause": exc.cause},
            )
        return JSONResponse(status_code=exc.status_code, content=pipeline_error_payload(request, exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        payload = {"detail": exc.detail, "request_id": get_request_id(request)}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        payload = {"detail": "validation_error", "errors": jsonable_encoder(exc.errors()), "request_id": get_request_id(request)}
        return JSONResponse(status_code=422, content=payload)
