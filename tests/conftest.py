import os as _os
import sys

import pytest

# Ensure project root is importable when the package is not installed.
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from crg import db  # noqa: E402
from crg.errors import RuntimeCallError  # noqa: E402


class FakeRuntime:
    """In-memory ContainerRuntime.

    health: container_id -> list of statuses, one per round (last one repeats).
            An Exception instance in the list is raised instead.
    """

    def __init__(self, containers=None, labels=None, health=None, ports=None, up_error=None, list_error=None):
        self.containers = list(containers or [])
        self.labels = labels or {}
        self.health = health or {}
        self.ports = ports or {}
        self.up_error = up_error
        self.list_error = list_error
        self.up_calls = []
        self.health_calls = []
        self._health_idx = {}

    def up(self, compose_file, project_name, env_file, env):
        self.up_calls.append((compose_file, project_name, env_file, dict(env)))
        if self.up_error:
            raise self.up_error

    def list_containers(self, project_name):
        if self.list_error:
            raise self.list_error
        return list(self.containers)

    def inspect_health(self, container_id):
        self.health_calls.append(container_id)
        seq = self.health.get(container_id)
        if seq is None:
            raise RuntimeCallError(f"Container {container_id} has no health check configured")
        i = self._health_idx.get(container_id, 0)
        self._health_idx[container_id] = i + 1
        status = seq[min(i, len(seq) - 1)]
        if isinstance(status, Exception):
            raise status
        return status

    def inspect_labels(self, container_id):
        lab = self.labels.get(container_id)
        if isinstance(lab, Exception):
            raise lab
        return lab or {}

    def port_mappings(self, container_id):
        p = self.ports.get(container_id, [])
        if isinstance(p, Exception):
            raise p
        return list(p)


@pytest.fixture(autouse=True)
def no_event_db(monkeypatch):
    """Keep tests from writing an event database unless they opt in."""
    monkeypatch.setattr(db, "DB_PATH", None)


@pytest.fixture
def fake_runtime_cls():
    return FakeRuntime


@pytest.fixture
def no_sleep():
    calls = []

    def _sleep(s):
        calls.append(s)

    _sleep.calls = calls
    return _sleep
