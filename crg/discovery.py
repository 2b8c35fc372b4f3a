from __future__ import annotations

from .db import log_event
from .docker_ops import SERVICE_LABEL, ContainerRuntime
from .errors import DiscoveryError, RuntimeCallError
from .models import ComposeService


def _service_name(container_id: str, runtime: ContainerRuntime) -> str:
    try:
        labels = runtime.inspect_labels(container_id)
    except RuntimeCallError as e:
        log_event("WARN", f"Could not read service label: {e}", container_id=container_id)
        return ""
    name = labels.get(SERVICE_LABEL, "")
    if not name:
        log_event("WARN", f"Container has no '{SERVICE_LABEL}' label", container_id=container_id)
    return name


def discover(project_name: str, runtime: ContainerRuntime) -> list[ComposeService]:
    """Return one ComposeService per container of the compose project, in listing order."""
    try:
        container_ids = runtime.list_containers(project_name)
    except RuntimeCallError as e:
        raise DiscoveryError(f"Listing containers of project '{project_name}' failed: {e}") from e

    if not container_ids:
        raise DiscoveryError(f"No containers found for project '{project_name}'")
    if any(not cid for cid in container_ids):
        raise DiscoveryError(f"Runtime returned an empty container id for project '{project_name}'")

    services = [ComposeService(container_id=cid, service_name=_service_name(cid, runtime)) for cid in container_ids]
    log_event("INFO", f"Discovered {len(services)} service(s): {', '.join(s.display_name for s in services)}")
    return services
