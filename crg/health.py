from __future__ import annotations

from .docker_ops import ContainerRuntime
from .errors import RuntimeCallError
from .models import HealthState


def check_health_detail(container_id: str, runtime: ContainerRuntime) -> tuple[HealthState, str]:
    """Inspect a container's health status once.

    Returns (state, message). A failed inspection is reported as UNKNOWN with the
    runtime's reason as message; the caller decides what to do with it.
    """
    try:
        status = runtime.inspect_health(container_id).strip()
    except RuntimeCallError as e:
        return HealthState.UNKNOWN, str(e)
    if not status:
        return HealthState.UNKNOWN, "Empty health status"
    if status == "healthy":
        return HealthState.HEALTHY, status
    return HealthState.NOT_HEALTHY, status


def check_health(container_id: str, runtime: ContainerRuntime) -> HealthState:
    state, _ = check_health_detail(container_id, runtime)
    return state
