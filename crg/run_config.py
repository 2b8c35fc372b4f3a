from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from .docker_ops import validate_project_name
from .settings import settings

MIN_INTERVAL_S = 0.1


class RunConfig(BaseModel):
    compose_file: str = Field(settings.compose_file, description="Path to the docker compose file")
    project_name: str = Field(settings.project_name, description="Compose project name (label value)")
    env_file: str = Field(settings.env_file, description="KEY=VALUE file handed to docker compose")
    interval_s: float = Field(settings.interval_s, ge=MIN_INTERVAL_S, le=3600, description="Sleep before each health round")
    max_tries: int = Field(settings.max_tries, ge=1, le=10_000, description="Health rounds before giving up")
    parallel: bool = Field(settings.parallel, description="Check the services of one round concurrently")

    @field_validator("project_name")
    @classmethod
    def _project_name(cls, v: str) -> str:
        validate_project_name(v)
        return v
