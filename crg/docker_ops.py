from __future__ import annotations

import os
import re
import shutil
import subprocess
from typing import Protocol

import docker
from docker.errors import DockerException, NotFound
from requests.exceptions import RequestException

from .errors import RuntimeCallError
from .settings import settings

PROJECT_LABEL = "com.docker.compose.project"
SERVICE_LABEL = "com.docker.compose.service"

# The SDK lets transport errors from requests through when the daemon connection drops.
DOCKER_ERRORS = (DockerException, RequestException)

# docker compose project names: lowercase letters, digits, dashes, underscores.
PROJECT_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_\-]{0,62}$")


def validate_project_name(name: str) -> None:
    if not PROJECT_NAME_RE.match(name):
        raise ValueError(
            "Invalid project name. Use lowercase letters, digits, '-' and '_', starting with a letter or digit (max 63 chars)."
        )


class ContainerRuntime(Protocol):
    """Operations the gate needs from a container runtime. Failures raise RuntimeCallError."""

    def up(self, compose_file: str, project_name: str, env_file: str, env: dict[str, str]) -> None: ...

    def list_containers(self, project_name: str) -> list[str]: ...

    def inspect_health(self, container_id: str) -> str: ...

    def inspect_labels(self, container_id: str) -> dict[str, str]: ...

    def port_mappings(self, container_id: str) -> list[str]: ...


def _client() -> docker.DockerClient:
    return docker.from_env()


def compose_command() -> list[str]:
    """Prefer the compose v2 plugin, fall back to the standalone v1 binary."""
    if shutil.which("docker") is None and shutil.which("docker-compose"):
        return ["docker-compose"]
    return ["docker", "compose"]


def format_port_bindings(ports: dict[str, list[dict[str, str]] | None]) -> list[str]:
    """Render the SDK's port dict the way `docker port <id>` prints it.

    {"5432/tcp": [{"HostIp": "0.0.0.0", "HostPort": "32769"}]} -> ["5432/tcp -> 0.0.0.0:32769"]

    Exposed-but-unpublished ports (value None) are omitted. IPv6 bindings mirror
    the IPv4 ones and are skipped.
    """
    lines: list[str] = []
    for container_port, bindings in ports.items():
        for b in bindings or []:
            host_ip = b.get("HostIp", "")
            if ":" in host_ip:
                continue
            lines.append(f"{container_port} -> {host_ip}:{b.get('HostPort', '')}")
    return lines


class DockerRuntime:
    """ContainerRuntime backed by the docker SDK (and the compose CLI for `up`)."""

    def __init__(self, client: docker.DockerClient | None = None, compose_cmd: list[str] | None = None):
        self._client_obj = client
        self.compose_cmd = compose_cmd or compose_command()

    @property
    def client(self) -> docker.DockerClient:
        if self._client_obj is None:
            try:
                self._client_obj = _client()
            except DOCKER_ERRORS as e:
                raise RuntimeCallError(f"Docker is not available: {e}") from e
        return self._client_obj

    def _get(self, container_id: str):
        try:
            return self.client.containers.get(container_id)
        except NotFound as e:
            raise RuntimeCallError(f"Container {container_id[:12]} not found") from e
        except DOCKER_ERRORS as e:
            raise RuntimeCallError(f"Inspecting container {container_id[:12]} failed: {e}") from e

    def up(self, compose_file: str, project_name: str, env_file: str, env: dict[str, str]) -> None:
        cmd = [*self.compose_cmd, "-f", compose_file, "-p", project_name, "--env-file", env_file, "up", "-d"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=settings.compose_timeout_s,
                env={**os.environ, **env},
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise RuntimeCallError(f"docker compose up failed: {e}", command=cmd) from e
        if result.returncode != 0:
            raise RuntimeCallError(
                f"docker compose up exited with {result.returncode}",
                command=cmd,
                stderr=result.stderr,
            )

    def list_containers(self, project_name: str) -> list[str]:
        try:
            containers = self.client.containers.list(all=True, filters={"label": [f"{PROJECT_LABEL}={project_name}"]})
        except DOCKER_ERRORS as e:
            raise RuntimeCallError(f"Listing containers for project '{project_name}' failed: {e}") from e
        return [c.id for c in containers]

    def inspect_health(self, container_id: str) -> str:
        state = self._get(container_id).attrs.get("State") or {}
        health = state.get("Health")
        if not health:
            raise RuntimeCallError(f"Container {container_id[:12]} has no health check configured")
        return str(health.get("Status", ""))

    def inspect_labels(self, container_id: str) -> dict[str, str]:
        return dict(self._get(container_id).labels or {})

    def port_mappings(self, container_id: str) -> list[str]:
        cont = self._get(container_id)
        ports = (cont.attrs.get("NetworkSettings") or {}).get("Ports") or {}
        return format_port_bindings(ports)
