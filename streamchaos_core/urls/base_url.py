from __future__ import annotations

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

REDIRECT_PREFIX = "/redirect"

PROTOCOL_EXTENSIONS: dict[str, str] = {"hls": "m3u8", "dash": "mpd"}


def resolve_base_url(scheme: str, hostname: str, port: int | str | None) -> str:
    """Build ``scheme://host[:port]``, eliding the scheme's default port."""
    scheme = scheme.strip().lower()
    url = f"{scheme}://{hostname}"
    if port is None or port == "":
        return url
    port_value = int(port)
    if _DEFAULT_PORTS.get(scheme) != port_value:
        url = f"{url}:{port_value}"
    return url


def build_redirect_url(base_url: str, name: str, protocol: str) -> str:
    extension = PROTOCOL_EXTENSIONS[protocol]
    return f"{base_url.rstrip('/')}{REDIRECT_PREFIX}/{name}.{extension}"
