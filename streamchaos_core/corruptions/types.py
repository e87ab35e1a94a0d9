from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

WILDCARD = "*"

PROTOCOL_HLS = "hls"
PROTOCOL_DASH = "dash"
PROTOCOLS: tuple[str, ...] = (PROTOCOL_HLS, PROTOCOL_DASH)

STREAM_TYPES: tuple[str, ...] = ("live", "vod")

DEFAULT_DELAY_MS = 1000
DEFAULT_STATUS_CODE = 404
DEFAULT_THROTTLE_RATE = 100000


@dataclass(frozen=True)
class NoTarget:
    """Matches nothing; carves an exclusion out of a wildcard sibling."""

    mode: ClassVar[str] = "none"

    def wire_fields(self) -> dict[str, object]:
        return {}


@dataclass(frozen=True)
class AllSegments:
    mode: ClassVar[str] = "all"

    def wire_fields(self) -> dict[str, object]:
        return {"i": WILDCARD}


@dataclass(frozen=True)
class SegmentIndex:
    index: int
    mode: ClassVar[str] = "index"

    def wire_fields(self) -> dict[str, object]:
        return {"i": self.index}


@dataclass(frozen=True)
class MediaSequence:
    sequence: int
    mode: ClassVar[str] = "sequence"

    def wire_fields(self) -> dict[str, object]:
        return {"sq": self.sequence}


@dataclass(frozen=True)
class RelativeSequence:
    """Offset from the proxy's playback cursor. Stateful instances only."""

    offset: int
    mode: ClassVar[str] = "relativeSequence"

    def wire_fields(self) -> dict[str, object]:
        return {"rsq": self.offset}


@dataclass(frozen=True)
class Bitrate:
    bitrate: int
    mode: ClassVar[str] = "bitrate"

    def wire_fields(self) -> dict[str, object]:
        return {"br": self.bitrate}


@dataclass(frozen=True)
class LadderRung:
    """Quality ladder ordinal. Delay corruptions on HLS only."""

    rung: int
    mode: ClassVar[str] = "ladder"

    def wire_fields(self) -> dict[str, object]:
        return {"l": self.rung}


Target = Union[
    NoTarget,
    AllSegments,
    SegmentIndex,
    MediaSequence,
    RelativeSequence,
    Bitrate,
    LadderRung,
]

TARGET_KEYS: tuple[str, ...] = ("i", "sq", "rsq", "br", "l")


@dataclass(frozen=True)
class DelayCorruption:
    target: Target = field(default_factory=NoTarget)
    ms: int = DEFAULT_DELAY_MS
    kind: ClassVar[str] = "delay"

    def to_wire(self) -> dict[str, object]:
        payload = self.target.wire_fields()
        payload["ms"] = self.ms
        return payload


@dataclass(frozen=True)
class StatusCodeCorruption:
    target: Target = field(default_factory=NoTarget)
    code: int = DEFAULT_STATUS_CODE
    kind: ClassVar[str] = "statusCode"

    def to_wire(self) -> dict[str, object]:
        payload = self.target.wire_fields()
        payload["code"] = self.code
        return payload


@dataclass(frozen=True)
class TimeoutCorruption:
    target: Target = field(default_factory=NoTarget)
    kind: ClassVar[str] = "timeout"

    def to_wire(self) -> dict[str, object]:
        return self.target.wire_fields()


@dataclass(frozen=True)
class ThrottleCorruption:
    target: Target = field(default_factory=NoTarget)
    rate: int = DEFAULT_THROTTLE_RATE
    kind: ClassVar[str] = "throttle"

    def to_wire(self) -> dict[str, object]:
        payload = self.target.wire_fields()
        payload["rate"] = self.rate
        return payload


Corruption = Union[
    DelayCorruption,
    StatusCodeCorruption,
    TimeoutCorruption,
    ThrottleCorruption,
]


@dataclass(frozen=True)
class ProxyConfig:
    source_url: str | None
    protocol: str
    stream_type: str = "live"
    description: str | None = None
    delays: tuple[DelayCorruption, ...] = ()
    status_codes: tuple[StatusCodeCorruption, ...] = ()
    timeouts: tuple[TimeoutCorruption, ...] = ()
    throttles: tuple[ThrottleCorruption, ...] = ()


@dataclass(frozen=True)
class StoredConfiguration:
    name: str
    instance_url: str
    config: ProxyConfig

    @property
    def protocol(self) -> str:
        return self.config.protocol

    @property
    def key(self) -> tuple[str, str]:
        return (self.name, self.config.protocol)
