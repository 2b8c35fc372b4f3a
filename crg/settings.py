from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Run defaults (CLI flags override these)
    compose_file: str = os.getenv("CRG_COMPOSE_FILE", "docker-compose.yml")
    project_name: str = os.getenv("CRG_PROJECT_NAME", "crg")
    env_file: str = os.getenv("CRG_ENV_FILE", ".env")
    interval_s: float = _env_float("CRG_INTERVAL_S", 5.0)
    max_tries: int = _env_int("CRG_MAX_TRIES", 10)
    parallel: bool = _env_bool("CRG_PARALLEL", False)

    # Output
    sink: str = os.getenv("CRG_SINK", "azure")
    sink_target: str | None = os.getenv("CRG_SINK_TARGET")

    # Event history; unset keeps events in the log stream only.
    db_path: str | None = os.getenv("CRG_DB_PATH")
    log_level: str = os.getenv("CRG_LOG_LEVEL", "INFO")

    # Docker
    compose_timeout_s: int = _env_int("CRG_COMPOSE_TIMEOUT_S", 600)


settings = Settings()
