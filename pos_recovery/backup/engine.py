"""Backup and restore cycles for the point-of-sale database."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from .._utils import logger, utc_now
from ..base import BaseBackupRecordStore
from ..errors import (
    ExternalToolError,
    NoBackupAvailable,
    RecordInconsistencyError,
    RecordStoreError,
    UploadError,
)
from .models import BackupKind, BackupRecord, BackupStatus
from .tools import BaseToolRunner
from .upload import S3Uploader
from .utils import ensure_backup_dir, generate_backup_path, list_archives, parse_backup_timestamp


class RecordStoreResolver:
    """Authoritative resolution: the latest ``created`` record in the store."""

    source = "record store"

    def __init__(self, store: BaseBackupRecordStore):
        self.store = store

    async def latest(self) -> Optional[BackupRecord]:
        return await self.store.latest_created()

    async def lookup(self, path: str) -> Optional[BackupRecord]:
        return await self.store.get(path)

    async def mark_restored(self, record: BackupRecord, restored_at: datetime) -> None:
        if not await self.store.mark_restored(record.path, restored_at):
            logger.warning(f"Restore of {record.path} succeeded but no eligible record was updated")


class FilesystemResolver:
    """Degraded resolution: the lexically newest archive in the backup root.

    Used when the record store is known to be unreachable, so the store is
    neither read nor written.
    """

    source = "backup directory"

    def __init__(self, backup_root: Path):
        self.backup_root = backup_root

    def _record_for(self, archive: Path) -> BackupRecord:
        created_at = parse_backup_timestamp(archive.name)
        if created_at is None:
            created_at = datetime.fromtimestamp(archive.stat().st_mtime).astimezone()
        return BackupRecord(path=str(archive), created_at=created_at)

    async def latest(self) -> Optional[BackupRecord]:
        archives = list_archives(self.backup_root)
        if not archives:
            return None
        return self._record_for(archives[-1])

    async def lookup(self, path: str) -> Optional[BackupRecord]:
        archive = Path(path)
        return self._record_for(archive) if archive.is_file() else None

    async def mark_restored(self, record: BackupRecord, restored_at: datetime) -> None:
        logger.debug(f"Filesystem resolution: record store not updated for {record.path}")


class BackupEngine:
    """Take one preventive backup and record it."""

    def __init__(
        self,
        store: BaseBackupRecordStore,
        runner: BaseToolRunner,
        uri: str,
        backup_root: Path,
        uploader: Optional[S3Uploader] = None,
    ):
        self.store = store
        self.runner = runner
        self.uri = uri
        self.backup_root = Path(backup_root)
        self.uploader = uploader

    async def create_backup(self) -> BackupRecord:
        """Dump the database into a new archive and insert its record.

        Returns:
            The inserted BackupRecord (status ``created``, kind ``emergency``)
        """
        ensure_backup_dir(self.backup_root)
        archive, created_at = generate_backup_path(self.backup_root)
        logger.info(f"Starting backup: {archive}")

        # On failure nothing is recorded
        await self.runner.run_dump(self.uri, archive)

        record = BackupRecord(
            path=str(archive),
            created_at=created_at,
            kind=BackupKind.EMERGENCY,
            status=BackupStatus.CREATED,
        )
        try:
            await self.store.insert(record)
        except RecordStoreError as e:
            logger.error(
                f"Archive {archive} was written but its record could not be saved; "
                "bookkeeping is now inconsistent with disk"
            )
            raise RecordInconsistencyError(f"No record for written archive {archive}: {e}") from e

        size = archive.stat().st_size if archive.exists() else 0
        logger.info(f"Backup complete: {archive} ({size:,} bytes)")

        if self.uploader is not None:
            try:
                await self.uploader.upload(archive)
            except UploadError as e:
                logger.warning(f"Secondary failure, local backup kept: {e}")

        return record


class RestoreEngine:
    """Drop-and-replace restore from the latest eligible backup."""

    def __init__(self, runner: BaseToolRunner, uri: str, resolver):
        self.runner = runner
        self.uri = uri
        self.resolver = resolver

    async def restore_latest(self) -> BackupRecord:
        """Restore the newest eligible backup.

        Raises:
            NoBackupAvailable: nothing to restore; nothing is written
            ExternalToolError: restore failed; the record is left unchanged
        """
        record = await self.resolver.latest()
        if record is None:
            raise NoBackupAvailable(self.resolver.source)
        return await self._restore(record)

    async def restore_path(self, path: str) -> BackupRecord:
        """Operator-forced restore of one specific archive."""
        record = await self.resolver.lookup(path)
        if record is None:
            raise NoBackupAvailable(f"{self.resolver.source}: {path}")
        if record.status != BackupStatus.CREATED:
            logger.warning(f"Forcing restore of {path} (status: {record.status.value})")
        return await self._restore(record)

    async def _restore(self, record: BackupRecord) -> BackupRecord:
        archive = Path(record.path)
        if not archive.is_file():
            raise ExternalToolError("restore", None, f"archive not found: {archive}")

        logger.info(f"Starting restore from {archive} (created {record.created_at.isoformat()})")
        await self.runner.run_restore(self.uri, archive)

        restored_at = utc_now()
        try:
            await self.resolver.mark_restored(record, restored_at)
        except RecordStoreError as e:
            logger.error(
                f"Database was restored from {archive} but the record could not be updated; "
                "bookkeeping is now inconsistent with disk"
            )
            raise RecordInconsistencyError(f"Restored from {archive} but its record is stale: {e}") from e

        logger.info(f"Restore complete: {archive}")
        if record.status == BackupStatus.FAILED:
            return record
        return record.model_copy(update={"status": BackupStatus.RESTORED, "restored_at": restored_at})
