from __future__ import annotations

import json
from typing import Iterable

from streamchaos_core.corruptions.types import (
    PROTOCOL_HLS,
    WILDCARD,
    Corruption,
    ProxyConfig,
)

HLS_PROXY_PATH = "/api/v2/manifests/hls/proxy-master.m3u8"
DASH_PROXY_PATH = "/api/v2/manifests/dash/proxy-master.mpd"


def proxy_endpoint(protocol: str) -> str:
    return HLS_PROXY_PATH if protocol == PROTOCOL_HLS else DASH_PROXY_PATH


def to_unquoted_json(value: object) -> str:
    """Serialize like JSON, but with bare object keys and a bare ``*``.

    ``None`` members are dropped from objects, so ``{"i": None, "ms": 5}``
    renders as ``{ms:5}``. This is the grammar the stream proxy parses out of
    its ``delay``/``statusCode``/``timeout``/``throttle`` parameters.
    """
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_scalar(item) for item in value) + "]"
    if isinstance(value, dict):
        entries = [
            f"{key}:{_scalar(item)}"
            for key, item in value.items()
            if item is not None
        ]
        return "{" + ",".join(entries) + "}"
    return json.dumps(value)


def _scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        if value == WILDCARD:
            return WILDCARD
        return f'"{value}"'
    return to_unquoted_json(value)


def _corruption_param(name: str, corruptions: Iterable[Corruption]) -> str | None:
    items = [corruption.to_wire() for corruption in corruptions]
    if not items:
        return None
    return f"{name}={to_unquoted_json(items)}"


def build_query(config: ProxyConfig) -> str | None:
    if not config.source_url:
        return None
    # The source URL goes in verbatim; the proxy's own parser expects it raw.
    parts = [f"url={config.source_url}"]
    for name, corruptions in (
        ("delay", config.delays),
        ("statusCode", config.status_codes),
        ("timeout", config.timeouts),
        ("throttle", config.throttles),
    ):
        param = _corruption_param(name, corruptions)
        if param is not None:
            parts.append(param)
    return "&".join(parts)


def build_proxy_url(instance_url: str, config: ProxyConfig) -> str | None:
    """Return the full stream-proxy URL, or ``None`` without a source URL."""
    query = build_query(config)
    if query is None:
        return None
    return f"{instance_url.rstrip('/')}{proxy_endpoint(config.protocol)}?{query}"
