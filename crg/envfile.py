from __future__ import annotations

from dotenv import dotenv_values


def load_env_file(path: str) -> dict[str, str]:
    """Read KEY=VALUE pairs; blank lines and comments are ignored, bare keys map to ""."""
    return {k: (v if v is not None else "") for k, v in dotenv_values(dotenv_path=path).items()}
