"""Tests for backup utility functions."""

import os
import stat
from datetime import datetime, timezone, timedelta

from pos_recovery.backup.utils import (
    BACKUP_DIR_MODE,
    ensure_backup_dir,
    format_backup_name,
    generate_backup_path,
    list_archives,
    parse_backup_timestamp,
)


def test_format_backup_name():
    """Archive names encode the UTC creation time."""
    stamp = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
    assert format_backup_name(stamp) == "backup-20240305-140709-123456.gz"

    # Non-UTC timestamps are converted first
    local = stamp.astimezone(timezone(timedelta(hours=2)))
    assert format_backup_name(local) == "backup-20240305-140709-123456.gz"


def test_parse_backup_timestamp():
    stamp = datetime(2024, 3, 5, 14, 7, 9, 123456, tzinfo=timezone.utc)
    assert parse_backup_timestamp(format_backup_name(stamp)) == stamp

    # Second-resolution names are accepted too
    assert parse_backup_timestamp("backup-20240305-140709.gz") == stamp.replace(microsecond=0)

    assert parse_backup_timestamp("records.json") is None
    assert parse_backup_timestamp("backup-latest.gz") is None


def test_names_sort_chronologically():
    base = datetime(2024, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
    stamps = [base, base + timedelta(microseconds=1), base + timedelta(days=40)]
    names = [format_backup_name(s) for s in stamps]
    assert sorted(names) == names


def test_generate_backup_path_avoids_collisions(tmp_path):
    """Two backups in the same instant get distinct paths."""
    now = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)

    first, first_stamp = generate_backup_path(tmp_path, now=now)
    assert first_stamp == now
    first.write_bytes(b"x")

    second, second_stamp = generate_backup_path(tmp_path, now=now)
    assert second != first
    assert second_stamp == now + timedelta(microseconds=1)
    assert second.name > first.name


def test_ensure_backup_dir_creates_owner_only(tmp_path):
    root = tmp_path / "backups" / "tocgamedb"

    assert ensure_backup_dir(root) == root
    assert root.is_dir()
    assert stat.S_IMODE(root.stat().st_mode) == BACKUP_DIR_MODE


def test_ensure_backup_dir_keeps_existing(tmp_path):
    root = tmp_path / "existing"
    root.mkdir()
    os.chmod(root, 0o755)
    (root / "backup-20240101-000000-000000.gz").write_bytes(b"old")

    ensure_backup_dir(root)

    assert stat.S_IMODE(root.stat().st_mode) == 0o755
    assert (root / "backup-20240101-000000-000000.gz").exists()


def test_list_archives(tmp_path):
    assert list_archives(tmp_path / "missing") == []

    (tmp_path / "backup-20240102-000000-000000.gz").write_bytes(b"b")
    (tmp_path / "backup-20240101-000000-000000.gz").write_bytes(b"a")
    (tmp_path / "records.json").write_text("[]")
    (tmp_path / "backup-dir.gz").mkdir()

    names = [p.name for p in list_archives(tmp_path)]
    assert names == [
        "backup-20240101-000000-000000.gz",
        "backup-20240102-000000-000000.gz",
    ]
