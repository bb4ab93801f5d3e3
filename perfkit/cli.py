"""Command-line interface for the local data recovery helpers.

Reads a JSON-file local store and prints the requested report as JSON on
stdout. Log output goes to stderr.

Usage
-----
    perfkit-recovery --store data.json summary
    perfkit-recovery --store data.json restore innerOps_backup_1700000000000
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional, Sequence

from .observability import setup_logging
from .recovery import (
    JsonFileStore,
    create_backup,
    export_local_data,
    inspect_local_data,
    local_data_summary,
    restore_from_backup,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="perfkit local data recovery")
    parser.add_argument(
        "--store", required=True, help="Path to the JSON local store file"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("inspect", help="Per-key report of stored data")
    sub.add_parser("summary", help="Totals across all data keys")
    sub.add_parser("export", help="Export all data keys")
    sub.add_parser("backup", help="Write a timestamped backup into the store")
    restore = sub.add_parser("restore", help="Restore data keys from a backup")
    restore.add_argument("backup_key", help="Key returned by the backup command")
    return parser


def _run(command: str, store: JsonFileStore, args: argparse.Namespace) -> Any:
    if command == "inspect":
        return {key: asdict(report) for key, report in inspect_local_data(store).items()}
    if command == "summary":
        return local_data_summary(store).to_dict()
    if command == "export":
        return export_local_data(store)
    if command == "backup":
        return {"backup_key": create_backup(store)}
    return {"restored": restore_from_backup(store, args.backup_key)}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint. Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_level = os.environ.get("PERFKIT_LOG_LEVEL", "WARNING").upper()
    effective_level = args.log_level or ("DEBUG" if args.verbose > 0 else env_level)
    setup_logging(effective_level)

    store = JsonFileStore(Path(args.store))
    try:
        result = _run(args.command, store, args)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    if args.command == "backup" and result["backup_key"] is None:
        return 1
    if args.command == "restore" and not result["restored"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
