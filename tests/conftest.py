from __future__ import annotations

import os

import pytest

from streamchaos_core.config import get_config


@pytest.fixture(autouse=True)
def _service_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    def set_default(name: str, value: str) -> None:
        if not os.getenv(name):
            monkeypatch.setenv(name, value)

    set_default("ENV", "test")
    set_default("LOG_LEVEL", "INFO")
    store_uri = (tmp_path / "chaos-configs.json").as_posix()
    monkeypatch.setenv("CHAOS_CONFIG_URI", store_uri)
    set_default("PUBLIC_PROTOCOL", "http")
    set_default("PUBLIC_HOSTNAME", "localhost")
    set_default("PUBLIC_PORT", "3001")
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def config_payload():
    def _factory(**overrides) -> dict[str, object]:
        payload: dict[str, object] = {
            "name": "live-delay",
            "instanceUrl": "https://chaos.example.com",
            "sourceUrl": "https://origin.example.com/live/master.m3u8",
            "protocol": "hls",
            "streamType": "live",
            "delays": [{"i": "*", "ms": 1000}],
            "statusCodes": [],
            "timeouts": [],
            "throttles": [],
        }
        payload.update(overrides)
        return payload

    return _factory
