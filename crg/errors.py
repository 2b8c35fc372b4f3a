from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    MISSING_COMPOSE_FILE = 2
    MISSING_ENV_FILE = 3
    DISCOVERY_FAILED = 4
    INSPECTION_FAILED = 5
    READINESS_TIMEOUT = 6
    PORT_FETCH_FAILED = 7
    MALFORMED_MAPPING = 8
    INVALID_ARGUMENTS = 9


class GateError(Exception):
    """Base class for every failure that ends a gate run."""

    exit_code: ExitCode = ExitCode.INVALID_ARGUMENTS


class ConfigurationError(GateError):
    exit_code = ExitCode.INVALID_ARGUMENTS


class MissingComposeFile(ConfigurationError):
    exit_code = ExitCode.MISSING_COMPOSE_FILE

    def __init__(self, path: str) -> None:
        super().__init__(f"Compose file not found: {path}")
        self.path = path


class MissingEnvFile(ConfigurationError):
    exit_code = ExitCode.MISSING_ENV_FILE

    def __init__(self, path: str) -> None:
        super().__init__(f"Environment file not found: {path}")
        self.path = path


class DiscoveryError(GateError):
    exit_code = ExitCode.DISCOVERY_FAILED


class InspectionError(GateError):
    exit_code = ExitCode.INSPECTION_FAILED

    def __init__(self, message: str, container_id: str, service_name: str = "", round_no: int | None = None) -> None:
        super().__init__(message)
        self.container_id = container_id
        self.service_name = service_name
        self.round_no = round_no


class ReadinessTimeout(GateError):
    exit_code = ExitCode.READINESS_TIMEOUT

    def __init__(self, message: str, tries_used: int, pending: list[str] | None = None) -> None:
        super().__init__(message)
        self.tries_used = tries_used
        self.pending = pending or []


class PortFetchError(GateError):
    exit_code = ExitCode.PORT_FETCH_FAILED


class MalformedMapping(GateError):
    exit_code = ExitCode.MALFORMED_MAPPING

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"Malformed port mapping {line!r}: {reason}")
        self.line = line
        self.reason = reason


class RuntimeCallError(Exception):
    """A container runtime call failed (docker daemon, docker compose CLI)."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr
