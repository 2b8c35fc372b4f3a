from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict

from pydantic import ValidationError

from . import db
from .docker_ops import DockerRuntime
from .errors import ConfigurationError, ExitCode
from .log import configure_logging
from .orchestrator import execute
from .publish import make_sink
from .run_config import RunConfig
from .settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


class _Parser(argparse.ArgumentParser):
    """Usage errors exit with INVALID_ARGUMENTS instead of argparse's 2."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(int(ExitCode.INVALID_ARGUMENTS), f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(prog="crg", description="Compose readiness gate: start, wait for health, publish ports")
    p.add_argument("--log-level", default=settings.log_level, help="DEBUG, INFO, WARN, ERROR")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_run = sub.add_parser("run", help="Start the project and publish host ports once healthy")
    s_run.add_argument("--compose-file", default=settings.compose_file)
    s_run.add_argument("--project-name", default=settings.project_name)
    s_run.add_argument("--env-file", default=settings.env_file)
    s_run.add_argument("--interval", type=float, default=settings.interval_s, help="Seconds to sleep before each health round")
    s_run.add_argument("--max-tries", type=int, default=settings.max_tries, help="Health rounds before giving up")
    s_run.add_argument("--parallel", action="store_true", default=settings.parallel, help="Check services of a round concurrently")
    s_run.add_argument("--sink", choices=["azure", "github", "dotenv"], default=settings.sink)
    s_run.add_argument("--sink-target", default=settings.sink_target, help="Output file for github/dotenv sinks")

    s_ev = sub.add_parser("events", help="Show recorded events (needs CRG_DB_PATH)")
    s_ev.add_argument("--limit", type=int, default=50)

    s_runs = sub.add_parser("runs", help="Show recorded runs and their variables (needs CRG_DB_PATH)")
    s_runs.add_argument("--limit", type=int, default=10)

    return p


def _run(args: argparse.Namespace) -> int:
    try:
        config = RunConfig(
            compose_file=args.compose_file,
            project_name=args.project_name,
            env_file=args.env_file,
            interval_s=args.interval,
            max_tries=args.max_tries,
            parallel=args.parallel,
        )
        sink = make_sink(args.sink, args.sink_target)
    except (ValidationError, ConfigurationError) as e:
        print(f"crg: invalid arguments: {e}", file=sys.stderr)
        return int(ExitCode.INVALID_ARGUMENTS)

    outcome = execute(config, runtime=DockerRuntime(), sink=sink)
    if not outcome.ok:
        print(f"crg: {outcome.exit_code.name}: {outcome.message}", file=sys.stderr)
    return int(outcome.exit_code)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.cmd == "run":
        return _run(args)

    if not db.enabled():
        print("crg: history is disabled; set CRG_DB_PATH", file=sys.stderr)
        return int(ExitCode.INVALID_ARGUMENTS)
    db.init_db()

    if args.cmd == "events":
        _print(db.latest_events(args.limit))
        return 0

    if args.cmd == "runs":
        _print([{**asdict(r), "variables": db.run_variables(r.id)} for r in db.list_runs(args.limit)])
        return 0

    return int(ExitCode.INVALID_ARGUMENTS)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
