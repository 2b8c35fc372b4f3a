from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from .settings import settings

logger = logging.getLogger("crg")

# None keeps events in the log stream only.
DB_PATH: str | None = settings.db_path

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _resolve_db_path(path: str) -> str:
    """Return a file path usable by sqlite.

    A bind-mounted path that did not exist on the host shows up as a directory
    inside the CI container; in that case the DB file is placed inside it.
    """
    p = os.path.abspath(path)
    if os.path.isdir(p):
        p = os.path.join(p, "crg.db")

    parent = os.path.dirname(p)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)

    return p


def enabled() -> bool:
    return bool(DB_PATH)


def connect() -> sqlite3.Connection:
    if not DB_PATH:
        raise RuntimeError("Event history is disabled. Set CRG_DB_PATH to enable it.")
    conn = sqlite3.connect(_resolve_db_path(DB_PATH))
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    """Create tables if they do not exist."""
    if not enabled():
        return
    with connect() as conn:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS runs (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              project TEXT NOT NULL,
              started_at TEXT NOT NULL,
              finished_at TEXT,
              exit_code INTEGER,
              tries_used INTEGER,
              message TEXT
            );

            CREATE TABLE IF NOT EXISTS events (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              level TEXT NOT NULL,
              service_name TEXT,
              container_id TEXT,
              message TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS variables (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              run_id INTEGER NOT NULL,
              name TEXT NOT NULL,
              value TEXT NOT NULL,
              FOREIGN KEY(run_id) REFERENCES runs(id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_events_ts ON events(ts);
            CREATE INDEX IF NOT EXISTS idx_variables_run_id ON variables(run_id);
            """
        )


def log_event(level: str, message: str, service_name: str | None = None, container_id: str | None = None) -> None:
    level = level.upper()
    prefix = ""
    if service_name or container_id:
        prefix = f"[{service_name or '-'}{'/' + container_id[:12] if container_id else ''}] "
    logger.log(_LEVELS.get(level, logging.INFO), "%s%s", prefix, message)

    if not enabled():
        return
    with connect() as conn:
        conn.execute(
            "INSERT INTO events (ts, level, service_name, container_id, message) VALUES (?, ?, ?, ?, ?)",
            (utc_now(), level, service_name, container_id, message),
        )


@dataclass(frozen=True)
class RunRow:
    id: int
    project: str
    started_at: str
    finished_at: str | None
    exit_code: int | None
    tries_used: int | None
    message: str | None


def _rows_to_dataclass(rows: Iterable[sqlite3.Row], cls: Any) -> list[Any]:
    out: list[Any] = []
    for r in rows:
        out.append(cls(**dict(r)))
    return out


def start_run(project: str) -> int | None:
    if not enabled():
        return None
    with connect() as conn:
        cur = conn.execute("INSERT INTO runs (project, started_at) VALUES (?, ?)", (project, utc_now()))
        return int(cur.lastrowid)


def finish_run(run_id: int | None, exit_code: int, tries_used: int, message: str, variables: Iterable[tuple[str, str]] = ()) -> None:
    if run_id is None or not enabled():
        return
    with connect() as conn:
        conn.execute(
            """
            UPDATE runs
            SET finished_at=?, exit_code=?, tries_used=?, message=?
            WHERE id=?
            """,
            (utc_now(), int(exit_code), tries_used, message, run_id),
        )
        conn.executemany(
            "INSERT INTO variables (run_id, name, value) VALUES (?, ?, ?)",
            [(run_id, name, value) for name, value in variables],
        )


def list_runs(limit: int = 20) -> list[RunRow]:
    with connect() as conn:
        rows = conn.execute("SELECT * FROM runs ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return _rows_to_dataclass(rows, RunRow)


def run_variables(run_id: int) -> dict[str, str]:
    with connect() as conn:
        rows = conn.execute("SELECT name, value FROM variables WHERE run_id=? ORDER BY id", (run_id,)).fetchall()
        return {r["name"]: r["value"] for r in rows}


def latest_events(limit: int = 100) -> list[dict[str, Any]]:
    with connect() as conn:
        rows = conn.execute("SELECT * FROM events ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]
