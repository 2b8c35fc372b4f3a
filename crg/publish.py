from __future__ import annotations

import os
import sys
from typing import Protocol, TextIO

from .errors import ConfigurationError


def variable_name(project: str, service: str, container_port: int) -> str:
    return f"project.{project}.service.{service}.port.{int(container_port)}"


class VariableSink(Protocol):
    def publish(self, name: str, value: str) -> None: ...


class AzurePipelinesSink:
    """Azure Pipelines logging command: the agent picks it up from stdout."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def publish(self, name: str, value: str) -> None:
        out = self.stream or sys.stdout
        out.write(f"##vso[task.setvariable variable={name}]{value}\n")
        out.flush()


class DotenvSink:
    """Writes NAME=VALUE lines to a file (appending) or to stdout."""

    def __init__(self, path: str | None = None):
        self.path = path

    def publish(self, name: str, value: str) -> None:
        line = f"{name}={value}\n"
        if not self.path:
            sys.stdout.write(line)
            sys.stdout.flush()
            return
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(line)


class GithubOutputSink(DotenvSink):
    """Appends step outputs to the file named by $GITHUB_OUTPUT."""

    def __init__(self, path: str | None = None):
        path = path or os.getenv("GITHUB_OUTPUT")
        if not path:
            raise ConfigurationError("GITHUB_OUTPUT is not set; pass --sink-target")
        super().__init__(path)


class MemorySink:
    def __init__(self) -> None:
        self.items: list[tuple[str, str]] = []

    def publish(self, name: str, value: str) -> None:
        self.items.append((name, value))

    def as_dict(self) -> dict[str, str]:
        return dict(self.items)


SINKS = {
    "azure": lambda target: AzurePipelinesSink(),
    "github": lambda target: GithubOutputSink(target),
    "dotenv": lambda target: DotenvSink(target),
    "memory": lambda target: MemorySink(),
}


def make_sink(kind: str, target: str | None = None) -> VariableSink:
    factory = SINKS.get(kind)
    if factory is None:
        raise ConfigurationError(f"Unknown sink '{kind}'. Choose one of: {', '.join(sorted(SINKS))}")
    return factory(target)
