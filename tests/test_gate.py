import threading

import pytest

from crg.errors import ConfigurationError, InspectionError, RuntimeCallError
from crg.gate import ReadinessGate, wait_until_ready
from crg.models import ComposeService, GateState, ReadinessResult

DB = ComposeService("c-db", "db")
WEB = ComposeService("c-web", "web")


@pytest.mark.parametrize("max_tries", [1, 2, 5])
def test_never_healthy_uses_exactly_max_tries_rounds(fake_runtime_cls, no_sleep, max_tries):
    rt = fake_runtime_cls(health={"c-db": ["starting"]})
    res = wait_until_ready([DB], 0.5, max_tries, runtime=rt, sleep=no_sleep)
    assert res == ReadinessResult(all_healthy=False, tries_used=max_tries)
    assert len(rt.health_calls) == max_tries
    assert no_sleep.calls == [0.5] * max_tries


def test_healthy_on_round_k(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={"c-db": ["starting", "starting", "healthy"]})
    res = wait_until_ready([DB], 1, 5, runtime=rt, sleep=no_sleep)
    assert res == ReadinessResult(all_healthy=True, tries_used=3)
    assert len(no_sleep.calls) == 3


def test_first_round_sleeps_before_checking(fake_runtime_cls):
    events = []
    rt = fake_runtime_cls(health={"c-db": ["healthy"]})
    orig = rt.inspect_health

    def inspect(cid):
        events.append("check")
        return orig(cid)

    rt.inspect_health = inspect
    wait_until_ready([DB], 2, 3, runtime=rt, sleep=lambda s: events.append(("sleep", s)))
    assert events == [("sleep", 2), "check"]


def test_success_needs_all_healthy_in_same_round(fake_runtime_cls, no_sleep):
    # db healthy only on round 1, web healthy only on round 2: never together.
    rt = fake_runtime_cls(health={"c-db": ["healthy", "unhealthy"], "c-web": ["starting", "healthy"]})
    res = wait_until_ready([DB, WEB], 0, 3, runtime=rt, sleep=no_sleep)
    assert res == ReadinessResult(all_healthy=False, tries_used=3)


def test_all_healthy_together_on_round_two(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={"c-db": ["starting", "healthy"], "c-web": ["starting", "healthy"]})
    gate = ReadinessGate(rt, 0, 4, sleep=no_sleep)
    assert gate.wait([DB, WEB]) == ReadinessResult(True, 2)
    assert gate.state is GateState.ALL_HEALTHY


def test_unknown_aborts_mid_round(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={"c-db": ["starting", RuntimeCallError("inspect failed")], "c-web": ["starting"]})
    gate = ReadinessGate(rt, 0, 10, sleep=no_sleep)
    with pytest.raises(InspectionError) as exc:
        gate.wait([DB, WEB])
    assert exc.value.round_no == 2
    assert exc.value.container_id == "c-db"
    assert "db" in str(exc.value)
    assert gate.state is GateState.INSPECTION_FAILED
    # round 1: db, web; round 2: db only, web never checked
    assert rt.health_calls == ["c-db", "c-web", "c-db"]


def test_missing_health_check_is_inspection_failure(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={})
    with pytest.raises(InspectionError, match="no health check"):
        wait_until_ready([DB], 0, 3, runtime=rt, sleep=no_sleep)


def test_exhausted_state_and_pending(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={"c-db": ["healthy"], "c-web": ["unhealthy"]})
    gate = ReadinessGate(rt, 0, 2, sleep=no_sleep)
    assert gate.wait([DB, WEB]) == ReadinessResult(False, 2)
    assert gate.state is GateState.EXHAUSTED
    assert gate.pending == ["web"]


def test_parallel_checks_report_first_unknown_in_discovery_order(fake_runtime_cls, no_sleep):
    rt = fake_runtime_cls(health={"c-db": [RuntimeCallError("db broke")], "c-web": [RuntimeCallError("web broke")]})
    with pytest.raises(InspectionError) as exc:
        wait_until_ready([DB, WEB], 0, 3, runtime=rt, sleep=no_sleep, parallel=True)
    assert exc.value.container_id == "c-db"


def test_parallel_checks_run_concurrently(fake_runtime_cls, no_sleep):
    barrier = threading.Barrier(2, timeout=5)
    rt = fake_runtime_cls(health={"c-db": ["healthy"], "c-web": ["healthy"]})
    orig = rt.inspect_health

    def inspect(cid):
        barrier.wait()  # deadlocks (times out) if checks run one after another
        return orig(cid)

    rt.inspect_health = inspect
    assert wait_until_ready([DB, WEB], 0, 1, runtime=rt, sleep=no_sleep, parallel=True) == ReadinessResult(True, 1)


@pytest.mark.parametrize("interval,max_tries", [(1, 0), (1, -3), (-1, 3)])
def test_invalid_budget_rejected(fake_runtime_cls, interval, max_tries):
    with pytest.raises(ConfigurationError):
        ReadinessGate(fake_runtime_cls(), interval, max_tries)
