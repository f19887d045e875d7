#!/usr/bin/env python3
"""
tasks.py: developer CLI for the taskcore domain.

Every command reads a YAML snapshot (see infrastructure.snapshot_parser) and
prints one structured JSON response.
"""

import argparse
import logging
import sys
from importlib.metadata import version as pkg_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional

import config
from infrastructure.file_repository import FileSnapshotRepository
from interface import cli_commands
from interface.cli_commands import CliDeps
from interface.cli_io import structured_error
from interface.cli_parser import build_parser as build_cli_parser


def _repository(snapshot: Optional[str]) -> FileSnapshotRepository:
    if snapshot:
        return FileSnapshotRepository(Path(snapshot).expanduser())
    default = config.get_snapshot_path()
    if default is None:
        raise ValueError("no snapshot given: pass --snapshot or set 'snapshot' in the config")
    return FileSnapshotRepository(default)


CLI_DEPS = CliDeps(repository_factory=_repository)


def _guard(command: str, handler, args) -> int:
    try:
        return handler(args, CLI_DEPS)
    except ValueError as exc:
        return structured_error(command, str(exc))


def cmd_parse_title(args) -> int:
    return _guard("parse-title", cli_commands.cmd_parse_title, args)


def cmd_key_between(args) -> int:
    return _guard("key-between", cli_commands.cmd_key_between, args)


def cmd_order(args) -> int:
    return _guard("order", cli_commands.cmd_order, args)


def cmd_view(args) -> int:
    return _guard("view", cli_commands.cmd_view, args)


def cmd_filter(args) -> int:
    return _guard("filter", cli_commands.cmd_filter, args)


def cmd_check_filter(args) -> int:
    return _guard("check-filter", cli_commands.cmd_check_filter, args)


def cmd_suggest(args) -> int:
    return _guard("suggest", cli_commands.cmd_suggest, args)


def cmd_review(args) -> int:
    return _guard("review", cli_commands.cmd_review, args)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    return build_cli_parser(commands=sys.modules[__name__])


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.get_log_level(), logging.WARNING)
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "version", False):
        try:
            print(pkg_version("taskcore"))
        except PackageNotFoundError:
            print("0.0.0")
        return 0
    if not getattr(args, "command", None):
        parser.print_help()
        return 1
    configure_logging(getattr(args, "verbose", False))
    return args.func(args)


__all__ = [
    "cmd_parse_title",
    "cmd_key_between",
    "cmd_order",
    "cmd_view",
    "cmd_filter",
    "cmd_check_filter",
    "cmd_suggest",
    "cmd_review",
    "CLI_DEPS",
    "build_parser",
    "main",
]


if __name__ == "__main__":
    sys.exit(main())
