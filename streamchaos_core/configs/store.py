from __future__ import annotations

import json
import threading
from collections import OrderedDict
from datetime import datetime, timezone

import fsspec

from streamchaos_core.corruptions.types import StoredConfiguration
from streamchaos_core.corruptions.validation import (
    configuration_to_dict,
    parse_stored_configuration,
)
from streamchaos_core.errors import PersistenceError, ValidationError
from streamchaos_core.logging import get_logger
from streamchaos_core.storage.paths import parent_path

logger = get_logger(__name__)

ConfigKey = tuple[str, str]


class ConfigurationStore:
    """Named proxy configurations keyed by ``(name, protocol)``.

    The whole collection lives in memory and is written to a single fsspec
    resource after every mutation. ``list()`` returns the most recently saved
    record first; re-saving a key moves it to the front.

    Every read and mutation holds one lock; mutations keep it across the
    in-memory change and the full write, so concurrent requests in one
    process cannot drop each other's updates or see a half-applied one.
    Several processes sharing one resource are not coordinated.
    """

    def __init__(self, uri: str) -> None:
        self._uri = uri
        # Insertion order is oldest first.
        self._records: OrderedDict[ConfigKey, StoredConfiguration] = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def open(cls, uri: str) -> "ConfigurationStore":
        store = cls(uri)
        store.load()
        return store

    @property
    def uri(self) -> str:
        return self._uri

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def load(self) -> int:
        """Replace the in-memory collection with the durable one.

        A missing or unreadable resource leaves the store empty.
        """
        records: OrderedDict[ConfigKey, StoredConfiguration] = OrderedDict()
        try:
            items = self._read_items()
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to load configurations, starting with an empty store",
                extra={"store_uri": self._uri, "error_message": str(exc)},
            )
            items = []
        # Persisted newest first.
        for item in reversed(items):
            if not isinstance(item, dict):
                continue
            try:
                record = parse_stored_configuration(item)
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid stored configuration",
                    extra={
                        "store_uri": self._uri,
                        "config_name": item.get("name"),
                        "error_message": exc.message,
                    },
                )
                continue
            records.pop(record.key, None)
            records[record.key] = record
        with self._lock:
            self._records = records
        logger.info(
            "Loaded configurations",
            extra={"store_uri": self._uri, "config_count": len(records)},
        )
        return len(records)

    def save(self, record: StoredConfiguration) -> StoredConfiguration:
        with self._lock:
            self._records.pop(record.key, None)
            self._records[record.key] = record
            self._persist()
        logger.info(
            "Configuration saved",
            extra={"config_name": record.name, "protocol": record.protocol},
        )
        return record

    def get(self, name: str, protocol: str) -> StoredConfiguration | None:
        with self._lock:
            return self._records.get((name, protocol))

    def list(self) -> list[StoredConfiguration]:
        with self._lock:
            return list(reversed(self._records.values()))

    def delete(self, name: str, protocol: str) -> bool:
        with self._lock:
            if self._records.pop((name, protocol), None) is None:
                return False
            self._persist()
        logger.info(
            "Configuration deleted",
            extra={"config_name": name, "protocol": protocol},
        )
        return True

    def _read_items(self) -> list[object]:
        fs, path = fsspec.core.url_to_fs(self._uri)
        if not fs.exists(path):
            logger.info(
                "No configuration file found, starting with an empty store",
                extra={"store_uri": self._uri},
            )
            return []
        with fs.open(path, "rb") as handle:
            payload = json.loads(handle.read().decode("utf-8"))
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            items = payload.get("configs", [])
            return items if isinstance(items, list) else []
        raise ValueError("configuration file must hold a list or an object")

    def _persist(self) -> None:
        # Caller holds the lock. The in-memory change is kept even when the
        # write fails.
        payload = {
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "configs": [
                configuration_to_dict(record)
                for record in reversed(self._records.values())
            ],
        }
        try:
            fs, path = fsspec.core.url_to_fs(self._uri)
            parent = parent_path(path)
            if parent:
                fs.makedirs(parent, exist_ok=True)
            with fs.open(path, "wb") as handle:
                handle.write(
                    json.dumps(payload, ensure_ascii=True, indent=2).encode("utf-8")
                )
        except OSError as exc:
            logger.error(
                "Failed to persist configurations",
                extra={"store_uri": self._uri, "error_message": str(exc)},
            )
            raise PersistenceError(
                f"Configuration change applied but not persisted: {exc}"
            ) from exc
