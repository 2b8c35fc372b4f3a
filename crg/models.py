from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HealthState(Enum):
    HEALTHY = "healthy"
    NOT_HEALTHY = "not_healthy"
    UNKNOWN = "unknown"


class GateState(Enum):
    POLLING = "polling"
    ALL_HEALTHY = "all_healthy"
    EXHAUSTED = "exhausted"
    INSPECTION_FAILED = "inspection_failed"


@dataclass(frozen=True)
class ComposeService:
    container_id: str
    service_name: str  # "" when the service label could not be read

    @property
    def display_name(self) -> str:
        return self.service_name or self.container_id[:12]


@dataclass(frozen=True)
class PortMapping:
    container_port: int
    host_port: int
    protocol: str = "tcp"
    host_ip: str = ""


@dataclass(frozen=True)
class ReadinessResult:
    all_healthy: bool
    tries_used: int


@dataclass(frozen=True)
class PublishedVariable:
    name: str
    value: str
