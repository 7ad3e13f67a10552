"""
Command-line access to the store.

Usage:
    python -m ecole_manager.cli migrate [--clear]
    python -m ecole_manager.cli backup [--output FILE]
    python -m ecole_manager.cli export [--output FILE]
    python -m ecole_manager.cli clear-legacy
    python -m ecole_manager.cli stats
    python -m ecole_manager.cli health
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from ecole_manager.core.config import Settings, settings as default_settings
from ecole_manager.core.exceptions import ServiceError
from ecole_manager.core.log_config import setup_logging
from ecole_manager.services import DatabaseService


def _write(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Written to {output}")
    else:
        print(text)


def _print_progress(category: str, done: int, total: int) -> None:
    if done == total:
        print(f"  {category}: {total} record(s)")


async def run(args: argparse.Namespace, app_settings: Settings) -> int:
    try:
        service = await DatabaseService.from_settings(app_settings)
    except ServiceError as exc:
        print(f"Store unavailable: {exc.message}", file=sys.stderr)
        return 1
    try:
        if args.command == "migrate":
            result = await service.migrate(progress=_print_progress)
            for warning in result.warnings:
                print(f"  WARNING {warning}", file=sys.stderr)
            if not result.success:
                print(f"Migration failed: {result.reason}", file=sys.stderr)
                return 1
            print(f"Migration done with {len(result.warnings)} warning(s).")
            if args.clear:
                removed = service.clear_legacy_store()
                print(f"Removed {len(removed)} legacy key(s).")
        elif args.command == "backup":
            _write(service.backup_json(), args.output)
        elif args.command == "export":
            result = await service.export_json()
            if not result.success:
                print(f"Export failed: {result.reason}", file=sys.stderr)
                return 1
            _write(result.text, args.output)
        elif args.command == "clear-legacy":
            removed = service.clear_legacy_store()
            print(f"Removed {len(removed)} legacy key(s).")
        elif args.command == "stats":
            result = await service.stats()
            if not result.success:
                print(f"Stats failed: {result.reason}", file=sys.stderr)
                return 1
            print(result.stats.model_dump_json(indent=2))
        elif args.command == "health":
            healthy = await service.is_healthy()
            print("healthy" if healthy else "unavailable")
            return 0 if healthy else 1
    finally:
        await service.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="School records store maintenance")
    commands = parser.add_subparsers(dest="command", required=True)

    migrate = commands.add_parser("migrate", help="Import the legacy key-value store")
    migrate.add_argument("--clear", action="store_true", help="Purge migrated legacy keys on success")
    for name, help_text in (("backup", "Dump every legacy key as JSON"), ("export", "Dump the relational store as JSON")):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("--output", type=str, default=None, help="File to write instead of stdout")
    commands.add_parser("clear-legacy", help="Remove legacy keys except UI state")
    commands.add_parser("stats", help="Row counts for the dashboards")
    commands.add_parser("health", help="Probe the relational store")
    return parser


def main(argv: Optional[List[str]] = None, app_settings: Optional[Settings] = None) -> int:
    app_settings = app_settings or default_settings
    setup_logging(app_settings)
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args, app_settings))


if __name__ == "__main__":
    sys.exit(main())
