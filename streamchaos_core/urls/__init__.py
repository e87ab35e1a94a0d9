from streamchaos_core.urls.base_url import (
    PROTOCOL_EXTENSIONS,
    REDIRECT_PREFIX,
    build_redirect_url,
    resolve_base_url,
)
from streamchaos_core.urls.encoder import (
    DASH_PROXY_PATH,
    HLS_PROXY_PATH,
    build_proxy_url,
    build_query,
    proxy_endpoint,
    to_unquoted_json,
)

__all__ = [
    "DASH_PROXY_PATH",
    "HLS_PROXY_PATH",
    "PROTOCOL_EXTENSIONS",
    "REDIRECT_PREFIX",
    "build_proxy_url",
    "build_query",
    "build_redirect_url",
    "proxy_endpoint",
    "resolve_base_url",
    "to_unquoted_json",
]
