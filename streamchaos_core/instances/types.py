from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChaosProxyInstance:
    name: str
    url: str
    stateful_mode: bool


@dataclass(frozen=True)
class InstanceDetails:
    name: str
    url: str | None
    stateful_mode: bool
    status: str | None = None


@dataclass(frozen=True)
class ProbeResult:
    valid: bool
    message: str
    status_code: int | None = None
