"""Entry point for the command-line interface."""

from __future__ import annotations

import argparse
import logging
import sys

from sessionlog.errors import SessionLogError
from sessionlog.log import configure_logging
from sessionlog.settings import AppSettings, LogSettings, load_app_settings

from .commands import COMMANDS

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Return the top-level parser with one subcommand per :data:`COMMANDS` entry."""
    parser = argparse.ArgumentParser(
        prog="sessionlog",
        description="Inspect and extend agent session transcripts",
    )
    parser.add_argument("--settings", help="path to a JSON or TOML settings file")
    parser.add_argument("--log-level", help="console log level, overrides settings")
    parser.add_argument("--log-dir", help="directory for log files, overrides settings")
    commands = parser.add_subparsers(dest="command", required=True)
    for name, command in COMMANDS.items():
        sub = commands.add_parser(name, help=command.help)
        command.add_arguments(sub)
        sub.set_defaults(func=command.func)
    return parser


def _load_settings(args: argparse.Namespace) -> AppSettings:
    settings = load_app_settings(args.settings) if args.settings else AppSettings()
    if args.log_level or args.log_dir:
        overrides = {
            key: value
            for key, value in (("level", args.log_level), ("log_dir", args.log_dir))
            if value
        }
        merged = settings.log.model_dump() | overrides
        settings.log = LogSettings.model_validate(merged)
    return settings


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        settings = _load_settings(args)
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"invalid settings: {exc}\n")
        return EXIT_USAGE
    configure_logging(settings.log.level, log_dir=settings.log.log_dir)
    args.app_settings = settings
    try:
        args.func(args)
    except SessionLogError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        sys.stderr.write(f"{exc}\n")
        return EXIT_FAILURE
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
