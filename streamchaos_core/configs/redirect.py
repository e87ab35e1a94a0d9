from __future__ import annotations

from dataclasses import dataclass

from streamchaos_core.configs.store import ConfigurationStore
from streamchaos_core.corruptions.types import StoredConfiguration
from streamchaos_core.errors import (
    GenerationError,
    InvalidExtensionError,
    NotFoundError,
)
from streamchaos_core.logging import get_logger
from streamchaos_core.urls.base_url import PROTOCOL_EXTENSIONS, build_redirect_url
from streamchaos_core.urls.encoder import build_proxy_url

logger = get_logger(__name__)

_EXTENSION_PROTOCOLS: dict[str, str] = {
    f".{extension}": protocol for protocol, extension in PROTOCOL_EXTENSIONS.items()
}


@dataclass(frozen=True)
class RedirectTarget:
    name: str
    protocol: str
    url: str


def parse_redirect_filename(filename: str) -> tuple[str, str]:
    for suffix, protocol in _EXTENSION_PROTOCOLS.items():
        if filename.endswith(suffix):
            return filename[: -len(suffix)], protocol
    raise InvalidExtensionError(
        "Invalid filename. Use .m3u8 for HLS or .mpd for DASH",
        details=[{"field": "filename", "message": f"unsupported: {filename}"}],
    )


class RedirectResolver:
    """Turns short ``<name>.m3u8``/``<name>.mpd`` paths into proxy URLs.

    Nothing is cached: each call encodes the record currently in the store.
    """

    def __init__(self, store: ConfigurationStore, base_url: str) -> None:
        self._store = store
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url

    def proxy_url(self, record: StoredConfiguration) -> str | None:
        return build_proxy_url(record.instance_url, record.config)

    def redirect_url(self, record: StoredConfiguration) -> str:
        return build_redirect_url(self._base_url, record.name, record.protocol)

    def resolve(self, filename: str) -> RedirectTarget:
        name, protocol = parse_redirect_filename(filename)
        record = self._store.get(name, protocol)
        if record is None:
            raise NotFoundError(
                f"Configuration '{name}' for {protocol.upper()} not found. "
                "Please create a configuration with this name and protocol first."
            )
        url = self.proxy_url(record)
        if not url:
            raise GenerationError("Failed to generate proxy URL")
        logger.info(
            "Redirect resolved",
            extra={
                "config_name": name,
                "protocol": protocol,
                "redirect_target": url,
            },
        )
        return RedirectTarget(name=name, protocol=protocol, url=url)
