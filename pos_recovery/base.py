from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .backup.models import BackupRecord


@dataclass
class BaseBackupRecordStore:
    """Single writer of backup bookkeeping.

    Implementations raise RecordStoreError for any storage failure.
    """

    async def insert(self, record: BackupRecord) -> None:
        """Insert a new record; a second record with the same path is an error."""
        raise NotImplementedError

    async def get(self, path: str) -> Optional[BackupRecord]:
        raise NotImplementedError

    async def latest_created(self) -> Optional[BackupRecord]:
        """Newest record with status ``created``; ties go to the later insert."""
        raise NotImplementedError

    async def mark_restored(self, path: str, restored_at: datetime) -> bool:
        """Move a ``created`` (or already ``restored``) record to ``restored``.

        Returns False when no record was updated; ``failed`` records are left
        alone.
        """
        raise NotImplementedError

    async def mark_failed(self, path: str) -> bool:
        """Operator transition ``created`` -> ``failed``."""
        raise NotImplementedError

    async def list_records(self) -> List[BackupRecord]:
        """All records, newest first."""
        raise NotImplementedError
