from __future__ import annotations

from typing import Any


class StreamChaosError(Exception):
    """Base error for streamchaos."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StreamChaosError):
    """Input validation failure."""

    code = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or []

    @property
    def fields(self) -> list[str]:
        return [str(item.get("field")) for item in self.details]


class InvalidProtocolError(ValidationError):
    code = "invalid_protocol"


class InvalidExtensionError(ValidationError):
    code = "invalid_extension"


class NotFoundError(StreamChaosError):
    """Requested configuration or instance does not exist."""

    code = "not_found"
    status_code = 404


class GenerationError(StreamChaosError):
    """A stored record could not be rendered into a proxy URL."""

    code = "generation_failed"
    status_code = 500


class PersistenceError(StreamChaosError):
    """The durable resource could not be written."""

    code = "persistence_failed"
    status_code = 500


class CollaboratorError(StreamChaosError):
    """An external tool (instance CLI, probe) failed."""

    code = "collaborator_error"
    status_code = 502


class AuthError(StreamChaosError):
    """Access token missing for a call that needs one."""

    code = "token_missing"
    status_code = 401
