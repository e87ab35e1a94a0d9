from __future__ import annotations

import os
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from streamchaos_core.errors import StreamChaosError
from streamchaos_core.logging import get_logger

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    commit: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: list[dict[str, object]] = []


def cors_origins(
    *,
    raw: str | None = None,
    env: str | None = None,
    default_allow_all: bool = False,
) -> list[str]:
    raw_value = raw if raw is not None else os.getenv("CORS_ALLOW_ORIGINS", "")
    if raw_value:
        return [origin.strip() for origin in raw_value.split(",") if origin.strip()]
    if default_allow_all:
        return ["*"]
    env_value = (env or os.getenv("ENV", "dev")).lower()
    if env_value in {"dev", "local", "test"}:
        return ["*"]
    return []


def apply_cors_middleware(
    app: FastAPI,
    *,
    allow_credentials: bool = False,
    raw_origins: str | None = None,
    env: str | None = None,
    default_allow_all: bool = False,
) -> list[str]:
    origins = cors_origins(
        raw=raw_origins,
        env=env,
        default_allow_all=default_allow_all,
    )
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=allow_credentials,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    return origins


def correlation_id(header_value: str | None) -> str:
    if header_value:
        return header_value
    return str(uuid.uuid4())


def add_correlation_id_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def _add_correlation_id(request: Request, call_next):
        corr = correlation_id(request.headers.get("x-correlation-id"))
        request.state.correlation_id = corr
        response = await call_next(request)
        response.headers["x-correlation-id"] = corr
        return response


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[dict[str, object]] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=code, message=message, details=details or [])
    return JSONResponse(status_code=status_code, content=body.model_dump())


def add_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StreamChaosError)
    async def _streamchaos_error(request: Request, exc: StreamChaosError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                extra={
                    "error_code": exc.code,
                    "error_message": exc.message,
                    "correlation_id": getattr(request.state, "correlation_id", None),
                },
            )
        return error_response(
            exc.status_code,
            exc.code,
            exc.message,
            getattr(exc, "details", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        details: list[dict[str, object]] = []
        for item in exc.errors():
            loc = [str(part) for part in item.get("loc", ()) if part != "body"]
            details.append(
                {"field": ".".join(loc) or "body", "message": str(item.get("msg"))}
            )
        message = "; ".join(
            f"{item['field']}: {item['message']}" for item in details
        )
        return error_response(
            400, "validation_error", message or "Invalid request", details
        )


def build_health_response(
    service_name: str,
    *,
    status: str = "ok",
    version: str | None = None,
    commit: str | None = None,
) -> HealthResponse:
    return HealthResponse(
        status=status,
        service=service_name,
        version=version or os.getenv("STREAMCHAOS_VERSION", "dev"),
        commit=commit or os.getenv("GIT_COMMIT", "unknown"),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    )
