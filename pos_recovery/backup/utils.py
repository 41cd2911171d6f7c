"""Utility functions for backup archive naming and the backup root."""

import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .._utils import logger, utc_now

ARCHIVE_PREFIX = "backup-"
ARCHIVE_SUFFIX = ".gz"
BACKUP_DIR_MODE = 0o700

_NAME_PATTERN = re.compile(r"^backup-(\d{8}-\d{6})(?:-(\d{6}))?\.gz$")


def format_backup_name(timestamp: datetime) -> str:
    """Archive file name for a UTC timestamp.

    Returns:
        Name in format: backup-YYYYMMDD-HHMMSS-ffffff.gz (sorts chronologically)
    """
    return f"{ARCHIVE_PREFIX}{timestamp.astimezone(timezone.utc).strftime('%Y%m%d-%H%M%S-%f')}{ARCHIVE_SUFFIX}"


def parse_backup_timestamp(name: str) -> Optional[datetime]:
    """Recover the UTC timestamp encoded in an archive name.

    Accepts names with or without the microsecond part; returns None for files
    that are not backup archives.
    """
    match = _NAME_PATTERN.match(name)
    if not match:
        return None
    stamp = datetime.strptime(match.group(1), "%Y%m%d-%H%M%S").replace(tzinfo=timezone.utc)
    if match.group(2):
        stamp = stamp.replace(microsecond=int(match.group(2)))
    return stamp


def generate_backup_path(backup_root: Path, now: Optional[datetime] = None) -> Tuple[Path, datetime]:
    """Pick an unused archive path under the backup root.

    Returns:
        (archive path, timestamp encoded in its name)
    """
    timestamp = (now or utc_now()).astimezone(timezone.utc)
    path = backup_root / format_backup_name(timestamp)
    while path.exists():
        timestamp += timedelta(microseconds=1)
        path = backup_root / format_backup_name(timestamp)
    return path, timestamp


def ensure_backup_dir(backup_root: Path) -> Path:
    """Create the backup root with owner-only permissions.

    An existing directory keeps its current mode.
    """
    if backup_root.is_dir():
        return backup_root

    backup_root.mkdir(parents=True, mode=BACKUP_DIR_MODE)
    # mkdir's mode is filtered by the umask, set it explicitly
    os.chmod(backup_root, BACKUP_DIR_MODE)
    logger.info(f"Created backup directory: {backup_root}")
    return backup_root


def list_archives(backup_root: Path) -> List[Path]:
    """Backup archives in the root, oldest first by name."""
    if not backup_root.is_dir():
        return []
    return sorted(
        (p for p in backup_root.iterdir()
         if p.is_file() and p.name.startswith(ARCHIVE_PREFIX) and p.name.endswith(ARCHIVE_SUFFIX)),
        key=lambda p: p.name,
    )
