#!/usr/bin/env python3
"""
procsup CLI - run one program under supervision.

Usage:
    procsup run -- make -j8
    procsup run -c etc/procsup.yaml --kill-timeout-ms 2000 -- ./server --port 8080
    procsup run -c etc/procsup.yaml          # program taken from runtime.program
    procsup config -c etc/procsup.yaml --format json

Exit status of ``run``: the program's own exit code; 128+N when it was
cancelled by, or died from, signal N; 1 for any other failure.
"""

import argparse
import json
import sys
from collections.abc import Sequence
from typing import Any, BinaryIO

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

import procsup
from procsup.config import Config, ProcsupConfig, RuntimeSettings, SupervisorSettings
from procsup.exceptions import ConfigError, SupervisorError
from procsup.log import LogConfig, Logger, LoggerFactory
from procsup.runtime import ProgramRuntime
from procsup.supervisor import LaunchResult, Supervisor, signal_name

from .output import ConsoleOutput, NullOutput, OutputWriter

FAILURE_STATUS = 1
SIGNAL_STATUS_BASE = 128


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1: {value}")
    return n


def _env_assignment(value: str) -> tuple[str, str]:
    name, sep, val = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE: {value}")
    return name, val


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="procsup", description="Single-child process supervisor"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"procsup {procsup.__version__}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run a program under supervision")
    run.add_argument("-c", "--config", help="Path to a procsup YAML file")
    run.add_argument(
        "--log-level",
        choices=["trace", "debug", "info", "warning", "error", "critical", "false"],
        help="Log level (default: from config, else info)",
    )
    run.add_argument("--tick-ms", type=_positive_int, help="Supervision tick")
    run.add_argument(
        "--kill-timeout-ms", type=_positive_int, help="Reap window after the forced kill"
    )
    run.add_argument("--chdir", metavar="DIR", help="Working directory for the program")
    run.add_argument(
        "-e",
        "--env",
        action="append",
        default=[],
        type=_env_assignment,
        metavar="NAME=VALUE",
        help="Export a variable before launch (repeatable)",
    )
    run.add_argument("--log-file", help="Redirect procsup's stdout/stderr to a file")
    run.add_argument("-q", "--quiet", action="store_true", help="No summary line")
    run.add_argument("argv", nargs=argparse.REMAINDER, help="-- PROGRAM [ARGS...]")

    cfg = sub.add_parser("config", help="Show the resolved configuration")
    cfg.add_argument("-c", "--config", required=True, help="Path to a procsup YAML file")
    cfg.add_argument("-f", "--format", choices=["yaml", "json"], default="yaml")
    cfg.add_argument(
        "--no-env", action="store_true", help="Disable environment variable overrides"
    )
    return parser


def _load_config(path: str | None, enable_env: bool = True) -> ProcsupConfig:
    if path is None:
        return ProcsupConfig()
    return Config(path, enable_env_overrides=enable_env).validate()


def _supervisor_settings(args: argparse.Namespace, cfg: ProcsupConfig) -> SupervisorSettings:
    values = cfg.supervisor.model_dump()
    if args.tick_ms is not None:
        values["tick_ms"] = args.tick_ms
    if args.kill_timeout_ms is not None:
        values["kill_timeout_ms"] = args.kill_timeout_ms
    return SupervisorSettings(**values)


def _runtime_settings(args: argparse.Namespace, cfg: ProcsupConfig) -> RuntimeSettings:
    argv = list(args.argv)
    if argv and argv[0] == "--":
        argv = argv[1:]

    base: dict[str, Any] = cfg.runtime.model_dump() if cfg.runtime else {}
    if argv:
        base["program"], base["args"] = argv[0], argv[1:]
    elif not base:
        raise ConfigError("no program given and no runtime section configured")

    env = dict(base.get("env") or {})
    env.update(dict(args.env))
    base["env"] = env
    if args.chdir:
        base["workdir"] = args.chdir
    if args.log_file:
        base["log_file"] = args.log_file
    return RuntimeSettings(**base)


def _create_logger(args: argparse.Namespace, cfg: ProcsupConfig) -> Logger:
    level = args.log_level if args.log_level is not None else cfg.logging.level
    config = LogConfig.from_params(
        level,
        location=cfg.logging.location,
        micros=cfg.logging.micros,
        colors=cfg.logging.colors and sys.stderr.isatty(),
        stream=cfg.logging.stream,
    )
    return LoggerFactory.create_root(config)


def exit_status(result: LaunchResult) -> int:
    """Map a LaunchResult to a shell exit status."""
    signum = result.cancel_signal or result.term_signal
    if signum:
        return SIGNAL_STATUS_BASE + signum
    if result.error is not None or result.exit_code < 0:
        return FAILURE_STATUS
    return result.exit_code


def summarize(program: str, result: LaunchResult) -> str:
    """One line describing how the program ended."""
    if result.error is not None:
        return f"procsup: {program} failed: {result.error}"
    if result.cancel_signal:
        return f"procsup: {program} cancelled by {signal_name(result.cancel_signal)}"
    if result.term_signal:
        return f"procsup: {program} killed by {signal_name(result.term_signal)}"
    return f"procsup: {program} exited with code {result.exit_code}"


def _run(
    args: argparse.Namespace, output: BinaryIO | None, out: OutputWriter
) -> int:
    cfg = _load_config(args.config)
    lg = _create_logger(args, cfg)
    settings = _runtime_settings(args, cfg)

    supervisor = Supervisor.get_instance()
    supervisor.configure(
        _supervisor_settings(args, cfg), LoggerFactory.derive(lg, "supervisor")
    )

    runtime = ProgramRuntime.create(settings, supervisor, LoggerFactory.derive(lg, "runtime"))
    runtime.init_runtime()
    result = runtime.launch(output=output)

    out.write(summarize(settings.program, result))
    out.flush()
    return exit_status(result)


def _show_config(args: argparse.Namespace, out: OutputWriter) -> int:
    cfg = _load_config(args.config, enable_env=not args.no_env)
    data = cfg.model_dump(exclude_none=True)
    if args.format == "json":
        out.write(json.dumps(data, indent=2))
    else:
        out.write(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
    out.flush()
    return 0


def main(
    argv: Sequence[str] | None = None,
    output: BinaryIO | None = None,
    out: OutputWriter | None = None,
) -> int:
    """
    Main entry point for the procsup CLI.

    Args:
        argv: Command line without the program name, sys.argv[1:] if None
        output: Binary stream for the child's output, stdout if None
        out: Writer for procsup's own lines, stderr if None
    """
    args = _build_parser().parse_args(argv)

    try:
        if args.command == "config":
            return _show_config(args, out or ConsoleOutput(sys.stdout))
        if args.quiet:
            out = NullOutput()
        return _run(args, output, out or ConsoleOutput())
    except SupervisorError as e:
        print(f"procsup: {e}", file=sys.stderr)
        return FAILURE_STATUS
    except ValidationError as e:
        print(f"procsup: invalid settings ({e.error_count()} errors)", file=sys.stderr)
        return FAILURE_STATUS


if __name__ == "__main__":
    sys.exit(main())
