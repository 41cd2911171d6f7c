"""JSON file backup record store for single-host deployments."""

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..backup.models import BackupRecord, BackupStatus
from ..base import BaseBackupRecordStore
from ..errors import RecordStoreError
from .._utils import logger


@dataclass
class JsonBackupRecordStore(BaseBackupRecordStore):
    """Records kept as a JSON list in insertion order.

    The file is rewritten atomically on every change.
    """

    file_path: Path

    def __post_init__(self):
        self.file_path = Path(self.file_path)

    def _load(self) -> List[BackupRecord]:
        if not self.file_path.exists():
            return []
        try:
            with open(self.file_path, "r") as f:
                documents = json.load(f)
            return [BackupRecord.from_document(d) for d in documents]
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise RecordStoreError(f"Failed to read backup records from {self.file_path}: {e}") from e

    def _save(self, records: List[BackupRecord]) -> None:
        documents: List[Dict[str, Any]] = [r.model_dump(mode="json", by_alias=True) for r in records]
        tmp_path = self.file_path.with_name(f".{self.file_path.name}.tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(documents, f, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            raise RecordStoreError(f"Failed to write backup records to {self.file_path}: {e}") from e

    async def insert(self, record: BackupRecord) -> None:
        records = self._load()
        if any(r.path == record.path for r in records):
            raise RecordStoreError(f"Backup record already exists for {record.path}")
        records.append(record)
        self._save(records)
        logger.debug(f"Inserted backup record: {record.path}")

    async def get(self, path: str) -> Optional[BackupRecord]:
        for record in self._load():
            if record.path == path:
                return record
        return None

    async def latest_created(self) -> Optional[BackupRecord]:
        latest = None
        for record in self._load():
            # >= so that a later insert wins a createdAt tie
            if record.eligible and (latest is None or record.created_at >= latest.created_at):
                latest = record
        return latest

    async def mark_restored(self, path: str, restored_at: datetime) -> bool:
        records = self._load()
        for record in records:
            if record.path != path:
                continue
            if record.status == BackupStatus.FAILED:
                logger.warning(f"Not marking {path} as restored: record is marked failed")
                return False
            record.status = BackupStatus.RESTORED
            record.restored_at = restored_at
            self._save(records)
            return True
        return False

    async def mark_failed(self, path: str) -> bool:
        records = self._load()
        for record in records:
            if record.path == path and record.status == BackupStatus.CREATED:
                record.status = BackupStatus.FAILED
                self._save(records)
                return True
        return False

    async def list_records(self) -> List[BackupRecord]:
        indexed = list(enumerate(self._load()))
        indexed.sort(key=lambda item: (item[1].created_at, item[0]), reverse=True)
        return [record for _, record in indexed]
