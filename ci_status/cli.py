"""CLI entrypoints for ci-status commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import (
    DEFAULT_FAILURE_DESC,
    DEFAULT_PENDING_DESC,
    DEFAULT_SUCCESS_DESC,
    FileConfig,
    RunConfig,
    SetConfig,
    first_set,
    load_config,
    parse_duration,
)
from .errors import ConfigError
from .forge.client import DEFAULT_REQUEST_TIMEOUT
from .logging import configure_logging
from .models import State
from .orchestrator import StatusOrchestrator

COMMAND_SEPARATOR = "--"


def _duration(value: str) -> Optional[float]:
    try:
        return parse_duration(value)
    except ConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("context", help="Status context label, e.g. ci/test.")
    parser.add_argument("--forge", default=None, help="Try this forge strategy first (github, generic).")
    parser.add_argument("--commit", default=None, help="Override the commit SHA.")
    parser.add_argument("--url", default=None, help="Target URL linked from the status.")
    parser.add_argument(
        "--silent",
        action="store_true",
        default=None,
        help="Suppress warnings when reporting is a no-op or fails.",
    )
    parser.add_argument(
        "--request-timeout",
        type=_duration,
        default=None,
        metavar="DURATION",
        help=f"Timeout for each forge API request (default {DEFAULT_REQUEST_TIMEOUT:g}s).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ci-status",
        description="Run a command and report its outcome as a commit status.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .ci-status.yml file (defaults to the current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Run a command and report status to a forge.",
        usage="ci-status run CONTEXT [options] -- COMMAND [ARGS...]",
    )
    _add_verbose_option(run_parser, suppress_default=True)
    _add_common_options(run_parser)
    run_parser.add_argument(
        "--pending-desc",
        default=None,
        help=f"Description while the command runs (default {DEFAULT_PENDING_DESC!r}).",
    )
    run_parser.add_argument(
        "--success-desc",
        default=None,
        help=f"Description when the command exits 0 (default {DEFAULT_SUCCESS_DESC!r}).",
    )
    run_parser.add_argument(
        "--failure-desc",
        default=None,
        help=f"Description when the command exits non-zero (default {DEFAULT_FAILURE_DESC!r}).",
    )
    run_parser.add_argument(
        "--timeout",
        type=_duration,
        default=None,
        metavar="DURATION",
        help="Maximum run time, e.g. 90s or 5m (default: unlimited).",
    )

    set_parser = subparsers.add_parser("set", help="Set a single status for a context.")
    _add_verbose_option(set_parser, suppress_default=True)
    _add_common_options(set_parser)
    set_parser.add_argument(
        "--state",
        choices=[state.value for state in State],
        default=State.PENDING.value,
        help="State to report.",
    )
    set_parser.add_argument("--description", default="", help="Status description.")

    return parser


def split_command(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split ``argv`` at the first ``--`` into ci-status args and the wrapped command."""
    args = list(argv)
    if COMMAND_SEPARATOR not in args:
        return args, []
    index = args.index(COMMAND_SEPARATOR)
    return args[:index], args[index + 1 :]


def build_run_config(
    args: argparse.Namespace, command: Sequence[str], file_config: FileConfig
) -> RunConfig:
    return RunConfig(
        context=args.context,
        command=command[0],
        args=list(command[1:]),
        forge=first_set(args.forge, file_config.forge),
        commit=args.commit,
        url=first_set(args.url, file_config.url),
        pending_desc=first_set(args.pending_desc, file_config.pending_desc, DEFAULT_PENDING_DESC),
        success_desc=first_set(args.success_desc, file_config.success_desc, DEFAULT_SUCCESS_DESC),
        failure_desc=first_set(args.failure_desc, file_config.failure_desc, DEFAULT_FAILURE_DESC),
        timeout=first_set(args.timeout, file_config.timeout),
        silent=bool(first_set(args.silent, file_config.silent, False)),
        request_timeout=first_set(
            args.request_timeout, file_config.request_timeout, DEFAULT_REQUEST_TIMEOUT
        ),
    )


def build_set_config(args: argparse.Namespace, file_config: FileConfig) -> SetConfig:
    return SetConfig(
        context=args.context,
        state=State(args.state),
        description=args.description,
        url=first_set(args.url, file_config.url),
        commit=args.commit,
        forge=first_set(args.forge, file_config.forge),
        silent=bool(first_set(args.silent, file_config.silent, False)),
        request_timeout=first_set(
            args.request_timeout, file_config.request_timeout, DEFAULT_REQUEST_TIMEOUT
        ),
    )


def run(argv: Sequence[str] | None = None, orchestrator: StatusOrchestrator | None = None) -> int:
    """Parse ``argv``, execute the command and return the process exit code."""
    own_args, command = split_command(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(own_args)

    if not args.context.strip():
        parser.exit(1, "Error: context name cannot be empty\n")

    try:
        file_config = load_config(args.config, required=args.config is not None)
    except ConfigError as exc:
        parser.exit(1, f"Error: {exc}\n")

    if args.command == "run":
        if not command:
            parser.exit(1, "Error: command missing after --\n")
        config = build_run_config(args, command, file_config)
        configure_logging(verbose=bool(args.verbose), silent=config.silent, log_file=args.log_file)
        return (orchestrator or StatusOrchestrator()).run(config)
    if args.command == "set":
        set_config = build_set_config(args, file_config)
        configure_logging(
            verbose=bool(args.verbose), silent=set_config.silent, log_file=args.log_file
        )
        return (orchestrator or StatusOrchestrator()).set(set_config)
    parser.exit(1, "Unknown command\n")  # pragma: no cover - argparse enforces choices
    return 1  # pragma: no cover


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint; the only place the process exit status is set."""
    sys.exit(run(argv))


if __name__ == "__main__":
    main(sys.argv[1:])
