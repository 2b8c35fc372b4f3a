from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Callable

from . import db
from .db import log_event
from .discovery import discover
from .docker_ops import ContainerRuntime
from .envfile import load_env_file
from .errors import (
    ExitCode,
    GateError,
    MalformedMapping,
    MissingComposeFile,
    MissingEnvFile,
    PortFetchError,
    ReadinessTimeout,
    RuntimeCallError,
)
from .gate import ReadinessGate
from .models import ComposeService, PublishedVariable
from .ports import parse
from .publish import VariableSink, variable_name
from .run_config import RunConfig


@dataclass
class RunOutcome:
    exit_code: ExitCode
    tries_used: int = 0
    variables: list[PublishedVariable] = field(default_factory=list)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code is ExitCode.SUCCESS


def _collect_ports(project: str, service: ComposeService, runtime: ContainerRuntime) -> list[PublishedVariable]:
    try:
        lines = runtime.port_mappings(service.container_id)
    except RuntimeCallError as e:
        raise PortFetchError(
            f"Fetching ports of service '{service.display_name}' (container {service.container_id[:12]}) failed: {e}"
        ) from e

    lines = [ln for ln in lines if ln.strip()]
    if not lines:
        log_event("INFO", "No published ports", service.service_name, service.container_id)
        return []

    out: list[PublishedVariable] = []
    for line in lines:
        try:
            m = parse(line)
        except MalformedMapping as e:
            log_event("ERROR", str(e), service.service_name, service.container_id)
            raise
        out.append(PublishedVariable(variable_name(project, service.service_name, m.container_port), str(m.host_port)))
    return out


def run(
    config: RunConfig,
    *,
    runtime: ContainerRuntime,
    sink: VariableSink,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """Start the compose project, wait for health, publish host ports.

    Raises a GateError subclass on the first fatal condition. Nothing is
    published unless every port line of every service parsed.
    """
    if not os.path.isfile(config.compose_file):
        raise MissingComposeFile(config.compose_file)
    if not os.path.isfile(config.env_file):
        raise MissingEnvFile(config.env_file)

    env = load_env_file(config.env_file)

    # The exit status of `up` is not a reliable success signal (compose writes
    # progress to stderr and may fail on an already-running project); success
    # is decided by discovery and health alone.
    try:
        runtime.up(config.compose_file, config.project_name, config.env_file, env)
        log_event("INFO", f"Started compose project '{config.project_name}'")
    except RuntimeCallError as e:
        detail = f": {e.stderr.strip()}" if e.stderr.strip() else ""
        log_event("WARN", f"Ignoring failure of compose up ({e}){detail}")

    services = discover(config.project_name, runtime)

    gate = ReadinessGate(runtime, config.interval_s, config.max_tries, sleep=sleep, parallel=config.parallel)
    result = gate.wait(services)
    if not result.all_healthy:
        raise ReadinessTimeout(
            f"Services of project '{config.project_name}' not healthy after {result.tries_used} round(s): "
            f"{', '.join(gate.pending)}",
            tries_used=result.tries_used,
            pending=gate.pending,
        )

    variables: list[PublishedVariable] = []
    for service in services:
        variables.extend(_collect_ports(config.project_name, service, runtime))

    for var in variables:
        sink.publish(var.name, var.value)
        log_event("INFO", f"Published {var.name}={var.value}")

    return RunOutcome(
        exit_code=ExitCode.SUCCESS,
        tries_used=result.tries_used,
        variables=variables,
        message=f"{len(services)} service(s) ready, {len(variables)} port(s) published",
    )


def execute(
    config: RunConfig,
    *,
    runtime: ContainerRuntime,
    sink: VariableSink,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """Like run(), but turns GateError into a failure outcome and records run history."""
    db.init_db()
    run_id = db.start_run(config.project_name)
    try:
        outcome = run(config, runtime=runtime, sink=sink, sleep=sleep)
    except GateError as e:
        tries = getattr(e, "tries_used", 0) or getattr(e, "round_no", 0) or 0
        outcome = RunOutcome(exit_code=e.exit_code, tries_used=tries, message=str(e))
        log_event("ERROR", f"{e.exit_code.name}: {e}")
    else:
        log_event("INFO", outcome.message)

    db.finish_run(
        run_id,
        outcome.exit_code,
        outcome.tries_used,
        outcome.message,
        [(v.name, v.value) for v in outcome.variables],
    )
    return outcome
