from __future__ import annotations

import os
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from streamchaos_core.config import Config, get_config
from streamchaos_core.configs import ConfigurationStore, RedirectResolver
from streamchaos_core.corruptions import (
    StoredConfiguration,
    configuration_to_dict,
    parse_stored_configuration,
    validate_protocol,
)
from streamchaos_core.errors import NotFoundError, StreamChaosError, ValidationError
from streamchaos_core.instances import (
    ChaosProxyInstance,
    OscInstanceClient,
    probe_url,
    validate_probe_url,
)
from streamchaos_core.logging import configure_logging, get_logger
from streamchaos_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    add_error_handlers,
    apply_cors_middleware,
    build_health_response,
)

SERVICE_NAME = "streamchaos-config"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV", "local"),
    version=os.getenv("STREAMCHAOS_VERSION"),
)
logger = get_logger(__name__)


class ConfigurationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    instance_url: str | None = Field(default=None, alias="instanceUrl")
    source_url: str | None = Field(default=None, alias="sourceUrl")
    protocol: str | None = None
    stream_type: str | None = Field(default=None, alias="streamType")
    description: str | None = None
    delays: list[dict[str, Any]] | None = None
    status_codes: list[dict[str, Any]] | None = Field(
        default=None, alias="statusCodes"
    )
    timeouts: list[dict[str, Any]] | None = None
    throttles: list[dict[str, Any]] | None = None
    stateful_mode: bool | None = Field(default=None, alias="statefulMode")


class SaveResponse(BaseModel):
    success: bool
    name: str
    protocol: str
    message: str


class MessageResponse(BaseModel):
    success: bool
    message: str


class TokenRequest(BaseModel):
    token: Any = None


class TokenStatusResponse(BaseModel):
    configured: bool


class ValidateRequest(BaseModel):
    url: Any = None


class ValidateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    message: str
    status_code: int | None = Field(default=None, alias="statusCode")


class InstanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Any = None
    stateful_mode: Any = Field(default=None, alias="statefulMode")


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or str(uuid.uuid4())


def _instance_payload(instance: ChaosProxyInstance) -> dict[str, object]:
    return {
        "name": instance.name,
        "url": instance.url,
        "statefulMode": instance.stateful_mode,
    }


def _with_urls(
    resolver: RedirectResolver, record: StoredConfiguration
) -> dict[str, object]:
    payload = configuration_to_dict(record)
    payload["proxyUrl"] = resolver.proxy_url(record)
    payload["redirectUrl"] = resolver.redirect_url(record)
    return payload


def create_app(
    *,
    config: Config | None = None,
    store: ConfigurationStore | None = None,
    instance_client: OscInstanceClient | None = None,
) -> FastAPI:
    """Wire the store, redirect resolver and instance client into an app.

    The base URL for redirect links is computed here, once.
    """
    resolved_config = config if config is not None else get_config()
    resolved_store = (
        store
        if store is not None
        else ConfigurationStore.open(resolved_config.config_store_uri)
    )
    base_url = resolved_config.base_url
    resolver = RedirectResolver(resolved_store, base_url)
    instances = instance_client
    if instances is None:
        instances = OscInstanceClient(
            binary=resolved_config.osc_binary,
            service_id=resolved_config.osc_service_id,
            timeout_seconds=resolved_config.osc_command_timeout_seconds,
        )
    probe_timeout = resolved_config.probe_timeout_seconds
    logger.info("Base URL for redirects resolved", extra={"base_url": base_url})

    app = FastAPI()
    app.state.store = resolved_store
    app.state.resolver = resolver
    app.state.instances = instances
    apply_cors_middleware(app, env=resolved_config.env)
    add_correlation_id_middleware(app)
    add_error_handlers(app)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return build_health_response(SERVICE_NAME)

    @app.post("/api/config", response_model=SaveResponse)
    def save_configuration(
        request: Request, payload: ConfigurationRequest
    ) -> SaveResponse:
        record = parse_stored_configuration(
            payload.model_dump(by_alias=True, exclude={"stateful_mode"}),
            stateful_mode=payload.stateful_mode,
        )
        resolved_store.save(record)
        logger.info(
            "Configuration save request completed",
            extra={
                "request_id": _request_id(request),
                "correlation_id": getattr(request.state, "correlation_id", None),
                "config_name": record.name,
                "protocol": record.protocol,
            },
        )
        return SaveResponse(
            success=True,
            name=record.name,
            protocol=record.protocol,
            message=f"Configuration '{record.name}' ({record.protocol}) saved",
        )

    @app.get("/api/config")
    def list_configurations() -> dict[str, object]:
        return {
            "configs": [
                _with_urls(resolver, record) for record in resolved_store.list()
            ]
        }

    @app.get("/api/config/{name}/{protocol}")
    def get_configuration(name: str, protocol: str) -> dict[str, object]:
        validate_protocol(protocol)
        record = resolved_store.get(name, protocol)
        if record is None:
            raise NotFoundError(f"Configuration '{name}' ({protocol}) not found")
        return {"config": _with_urls(resolver, record)}

    @app.delete("/api/config/{name}/{protocol}", response_model=MessageResponse)
    def delete_configuration(name: str, protocol: str) -> MessageResponse:
        validate_protocol(protocol)
        if not resolved_store.delete(name, protocol):
            raise NotFoundError(f"Configuration '{name}' ({protocol}) not found")
        return MessageResponse(
            success=True,
            message=f"Configuration '{name}' ({protocol}) deleted",
        )

    @app.get("/redirect/{filename}")
    def redirect(filename: str):
        try:
            target = resolver.resolve(filename)
        except StreamChaosError as exc:
            return PlainTextResponse(exc.message, status_code=exc.status_code)
        # Location carries the proxy URL as encoded, without quoting.
        return Response(status_code=302, headers={"location": target.url})

    @app.post("/api/auth/token", response_model=MessageResponse)
    def set_token(payload: TokenRequest) -> MessageResponse:
        if not payload.token or not isinstance(payload.token, str):
            raise ValidationError(
                "Token is required and must be a string",
                details=[{"field": "token", "message": "is required"}],
            )
        instances.set_access_token(payload.token)
        return MessageResponse(success=True, message="Token set successfully")

    @app.get("/api/auth/token/status", response_model=TokenStatusResponse)
    def token_status() -> TokenStatusResponse:
        return TokenStatusResponse(configured=instances.access_token is not None)

    @app.delete("/api/auth/token", response_model=MessageResponse)
    def clear_token() -> MessageResponse:
        instances.set_access_token(None)
        return MessageResponse(success=True, message="Token cleared successfully")

    @app.post("/api/chaos-proxy/validate")
    def validate_proxy(payload: ValidateRequest) -> dict[str, object]:
        url = validate_probe_url(payload.url)
        result = probe_url(url, timeout_seconds=probe_timeout)
        return ValidateResponse(
            valid=result.valid,
            message=result.message,
            status_code=result.status_code,
        ).model_dump(by_alias=True, exclude_none=True)

    @app.get("/api/chaos-proxy/instances")
    def list_instances() -> dict[str, object]:
        return {
            "instances": [
                _instance_payload(item) for item in instances.list_instances()
            ]
        }

    @app.post("/api/chaos-proxy/instances", status_code=201)
    def create_instance(payload: InstanceRequest) -> dict[str, object]:
        if not payload.name or not isinstance(payload.name, str):
            raise ValidationError(
                "Instance name is required and must be a string",
                details=[{"field": "name", "message": "is required"}],
            )
        if not isinstance(payload.stateful_mode, bool):
            raise ValidationError(
                "statefulMode must be a boolean",
                details=[{"field": "statefulMode", "message": "must be a boolean"}],
            )
        instance = instances.create_instance(payload.name, payload.stateful_mode)
        return {"instance": _instance_payload(instance)}

    @app.get("/api/chaos-proxy/instances/{name}")
    def describe_instance(name: str) -> dict[str, object]:
        details = instances.describe_instance(name)
        if details is None:
            raise NotFoundError(f"Instance {name} not found")
        return {
            "instance": {
                "name": details.name,
                "url": details.url,
                "statefulMode": details.stateful_mode,
                "status": details.status,
            }
        }

    @app.delete(
        "/api/chaos-proxy/instances/{name}", response_model=MessageResponse
    )
    def delete_instance(name: str) -> MessageResponse:
        instances.delete_instance(name)
        return MessageResponse(
            success=True, message=f"Instance {name} deleted successfully"
        )

    return app


app = create_app()
