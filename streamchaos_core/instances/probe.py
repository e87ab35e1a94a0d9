from __future__ import annotations

from urllib.parse import urlparse

import requests

from streamchaos_core.errors import ValidationError
from streamchaos_core.instances.types import ProbeResult
from streamchaos_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 10


def validate_probe_url(url: object) -> str:
    if not url or not isinstance(url, str):
        raise ValidationError(
            "URL is required and must be a string",
            details=[{"field": "url", "message": "is required"}],
        )
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(
            "The provided URL is not valid",
            details=[{"field": "url", "message": "invalid URL"}],
        )
    return url


def probe_url(
    url: str,
    *,
    timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
) -> ProbeResult:
    """GET ``url`` once and report whether it answered with a 2xx."""
    target = validate_probe_url(url)
    try:
        resp = requests.get(target, timeout=timeout_seconds)
    except requests.Timeout:
        result = ProbeResult(
            valid=False,
            message=f"Request timed out after {timeout_seconds:g} seconds",
        )
    except requests.RequestException as exc:
        result = ProbeResult(valid=False, message=str(exc) or "Failed to connect")
    else:
        if 200 <= resp.status_code < 300:
            result = ProbeResult(
                valid=True,
                message="Proxy is responding correctly",
                status_code=resp.status_code,
            )
        else:
            result = ProbeResult(
                valid=False,
                message=f"Proxy responded with status {resp.status_code}",
                status_code=resp.status_code,
            )
    logger.info(
        "Probe finished",
        extra={
            "probe_url": target,
            "status_code": result.status_code,
            "status": "ok" if result.valid else "failed",
        },
    )
    return result
