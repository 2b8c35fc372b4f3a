from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from .db import log_event
from .docker_ops import ContainerRuntime
from .errors import ConfigurationError, InspectionError
from .health import check_health_detail
from .models import ComposeService, GateState, HealthState, ReadinessResult


class ReadinessGate:
    """Polls a fixed set of services until all are healthy in the same round.

    Round 1 starts after one `interval` of sleep. The gate stops with
    EXHAUSTED once round `max_tries` has been checked without success, so a
    never-healthy project costs exactly `max_tries` rounds. An UNKNOWN health
    state aborts immediately with InspectionError, whatever budget is left.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        interval_s: float,
        max_tries: int,
        sleep: Callable[[float], None] = time.sleep,
        parallel: bool = False,
    ):
        if max_tries < 1:
            raise ConfigurationError("max_tries must be >= 1")
        if interval_s < 0:
            raise ConfigurationError("interval must be >= 0")
        self.runtime = runtime
        self.interval_s = interval_s
        self.max_tries = int(max_tries)
        self.sleep = sleep
        self.parallel = parallel
        self.state = GateState.POLLING
        self.round = 1
        self.pending: list[str] = []

    def _check_round(self, services: list[ComposeService]) -> list[HealthState]:
        if self.parallel and len(services) > 1:
            with ThreadPoolExecutor(max_workers=len(services)) as pool:
                results = list(pool.map(lambda s: check_health_detail(s.container_id, self.runtime), services))
        else:
            results = []
            for s in services:
                res = check_health_detail(s.container_id, self.runtime)
                results.append(res)
                if res[0] is HealthState.UNKNOWN:
                    break

        states: list[HealthState] = []
        for s, (state, msg) in zip(services, results):
            if state is HealthState.UNKNOWN:
                self.state = GateState.INSPECTION_FAILED
                log_event("ERROR", f"Round {self.round}: health inspection failed: {msg}", s.service_name, s.container_id)
                raise InspectionError(
                    f"Health inspection failed for service '{s.display_name}' (container {s.container_id[:12]}) "
                    f"on round {self.round}: {msg}",
                    container_id=s.container_id,
                    service_name=s.service_name,
                    round_no=self.round,
                )
            log_event("INFO", f"Round {self.round}/{self.max_tries}: {msg}", s.service_name, s.container_id)
            states.append(state)
        return states

    def wait(self, services: list[ComposeService]) -> ReadinessResult:
        while True:
            self.sleep(self.interval_s)
            states = self._check_round(services)
            self.pending = [s.display_name for s, st in zip(services, states) if st is not HealthState.HEALTHY]
            if not self.pending:
                self.state = GateState.ALL_HEALTHY
                log_event("INFO", f"All {len(services)} service(s) healthy after {self.round} round(s)")
                return ReadinessResult(all_healthy=True, tries_used=self.round)

            if self.round >= self.max_tries:
                self.state = GateState.EXHAUSTED
                log_event("WARN", f"Not healthy after {self.max_tries} round(s): {', '.join(self.pending)}")
                return ReadinessResult(all_healthy=False, tries_used=self.max_tries)
            self.round += 1


def wait_until_ready(
    services: list[ComposeService],
    interval_s: float,
    max_tries: int,
    *,
    runtime: ContainerRuntime,
    sleep: Callable[[float], None] = time.sleep,
    parallel: bool = False,
) -> ReadinessResult:
    return ReadinessGate(runtime, interval_s, max_tries, sleep=sleep, parallel=parallel).wait(services)
