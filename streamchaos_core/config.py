import os
from dataclasses import dataclass
from functools import lru_cache

from streamchaos_core.storage.paths import join_uri
from streamchaos_core.urls.base_url import resolve_base_url

ALLOWED_PUBLIC_PROTOCOLS = ("http", "https")


@dataclass(frozen=True)
class Config:
    env: str
    log_level: str
    data_root: str
    config_store_uri: str
    public_protocol: str
    public_hostname: str
    public_port: int
    osc_binary: str
    osc_service_id: str
    osc_command_timeout_seconds: int
    probe_timeout_seconds: int

    @property
    def base_url(self) -> str:
        return resolve_base_url(
            self.public_protocol,
            self.public_hostname,
            self.public_port,
        )

    @classmethod
    def from_env(cls) -> "Config":
        def read_int(name: str, default: str, *fallbacks: str) -> int:
            value = os.getenv(name)
            for fallback in fallbacks:
                if value:
                    break
                value = os.getenv(fallback)
            value = value or default
            try:
                return int(value)
            except ValueError as exc:
                raise ValueError(f"{name} must be an integer") from exc

        env = os.getenv("ENV", "dev").strip().lower()
        log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
        data_root = os.getenv("CHAOS_DATA_ROOT", ".")
        config_store_uri = os.getenv("CHAOS_CONFIG_URI") or join_uri(
            data_root, "chaos-configs.json"
        )

        public_protocol = os.getenv("PUBLIC_PROTOCOL", "http").strip().lower()
        if public_protocol not in ALLOWED_PUBLIC_PROTOCOLS:
            allowed = ", ".join(ALLOWED_PUBLIC_PROTOCOLS)
            raise ValueError(f"PUBLIC_PROTOCOL must be one of: {allowed}")
        public_hostname = os.getenv("PUBLIC_HOSTNAME", "localhost").strip()
        if not public_hostname:
            raise ValueError("PUBLIC_HOSTNAME must not be empty")
        public_port = read_int("PUBLIC_PORT", "3001", "PORT")
        if public_port <= 0 or public_port > 65535:
            raise ValueError("PUBLIC_PORT must be between 1 and 65535")

        osc_binary = os.getenv("OSC_BINARY", "osc")
        osc_service_id = os.getenv("OSC_SERVICE_ID", "eyevinn-chaos-stream-proxy")
        osc_command_timeout_seconds = read_int("OSC_COMMAND_TIMEOUT_SECONDS", "120")
        probe_timeout_seconds = read_int("PROBE_TIMEOUT_SECONDS", "10")

        return cls(
            env=env,
            log_level=log_level,
            data_root=data_root,
            config_store_uri=config_store_uri,
            public_protocol=public_protocol,
            public_hostname=public_hostname,
            public_port=public_port,
            osc_binary=osc_binary,
            osc_service_id=osc_service_id,
            osc_command_timeout_seconds=osc_command_timeout_seconds,
            probe_timeout_seconds=probe_timeout_seconds,
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config.from_env()
