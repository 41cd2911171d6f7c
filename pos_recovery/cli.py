"""Command line entry point for the pos-recovery daemon and operator tools."""

import argparse
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv

from ._utils import logger, setup_logging
from .backup.utils import ensure_backup_dir
from .config import RecoveryConfig
from .errors import RecoveryError
from .factory import (
    create_backup_engine,
    create_orchestrator,
    create_record_store,
    create_restore_engine,
)
from .monitor import CycleOutcome


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pos-recovery",
        description="Disaster-recovery daemon for the point-of-sale database",
    )
    parser.add_argument(
        "--env",
        help="Environment file to load before reading configuration",
        default=None,
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("run", help="Start the monitoring daemon")
    commands.add_parser("check", help="Run a single check/confirm/act cycle")
    commands.add_parser("backup", help="Take a preventive backup now, without confirmation")

    restore = commands.add_parser("restore", help="Restore the latest backup now, without confirmation")
    restore.add_argument("--path", help="Restore this archive instead of the latest one", default=None)

    commands.add_parser("list", help="List backup records, newest first")

    mark_failed = commands.add_parser("mark-failed", help="Mark a backup as failed so it is never restored")
    mark_failed.add_argument("path", help="Archive path of the record")

    return parser


async def _list(config: RecoveryConfig) -> int:
    records = await create_record_store(config).list_records()
    if not records:
        print("No backup records.")
        return 0
    for record in records:
        print(f"{record.created_at.isoformat()}  {record.status.value:<8}  {record.kind.value:<9}  {record.path}")
    return 0


async def _mark_failed(config: RecoveryConfig, path: str) -> int:
    if await create_record_store(config).mark_failed(path):
        logger.info(f"Marked {path} as failed")
        return 0
    logger.error(f"No created record found for {path}")
    return 1


async def _dispatch(args: argparse.Namespace, config: RecoveryConfig) -> int:
    if args.command == "run":
        await create_orchestrator(config).run()
        return 0

    if args.command == "check":
        outcome = await create_orchestrator(config).run_cycle()
        print(outcome.value)
        return 1 if outcome == CycleOutcome.FAILED else 0

    if args.command == "backup":
        record = await create_backup_engine(config, create_record_store(config)).create_backup()
        print(record.path)
        return 0

    if args.command == "restore":
        engine = create_restore_engine(config, create_record_store(config))
        record = await (engine.restore_path(args.path) if args.path else engine.restore_latest())
        print(record.path)
        return 0

    if args.command == "list":
        return await _list(config)

    if args.command == "mark-failed":
        return await _mark_failed(config, args.path)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.env:
        load_dotenv(args.env, override=True)

    try:
        config = RecoveryConfig.from_env()
    except ValueError as e:
        setup_logging()
        logger.critical(f"Invalid configuration: {e}")
        return 2

    setup_logging(config.log_level)

    try:
        ensure_backup_dir(config.backup.backup_root)
    except OSError as e:
        logger.critical(f"Cannot create backup directory {config.backup.backup_root}: {e}")
        return 1

    try:
        return asyncio.run(_dispatch(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 0
    except RecoveryError as e:
        logger.error(f"[{e.kind}] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
