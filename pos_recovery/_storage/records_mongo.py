"""MongoDB-backed backup record store (authoritative bookkeeping)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..backup.models import BackupRecord, BackupStatus
from ..base import BaseBackupRecordStore
from ..errors import RecordStoreError
from .._utils import logger
from .mongo import mongo_collection

# Newest first; _id breaks createdAt ties in insertion order.
_NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


@dataclass
class MongoBackupRecordStore(BaseBackupRecordStore):
    uri: str
    collection_name: str = "backups"
    server_selection_timeout_ms: int = 5000

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception_type(ConnectionFailure),
        reraise=True,
    )
    async def _run(self, operation: Callable[[Any], Awaitable[Any]]) -> Any:
        async with mongo_collection(
            self.uri, self.collection_name, self.server_selection_timeout_ms
        ) as collection:
            return await operation(collection)

    async def insert(self, record: BackupRecord) -> None:
        async def _insert(collection):
            await collection.create_index([("path", ASCENDING)], unique=True)
            await collection.insert_one(record.to_document())

        try:
            await self._run(_insert)
        except DuplicateKeyError as e:
            raise RecordStoreError(f"Backup record already exists for {record.path}") from e
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to insert backup record {record.path}: {e}") from e

        logger.debug(f"Inserted backup record: {record.path}")

    async def get(self, path: str) -> Optional[BackupRecord]:
        try:
            document = await self._run(lambda c: c.find_one({"path": path}))
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to read backup record {path}: {e}") from e
        return BackupRecord.from_document(document) if document else None

    async def latest_created(self) -> Optional[BackupRecord]:
        try:
            document = await self._run(
                lambda c: c.find_one({"status": BackupStatus.CREATED.value}, sort=_NEWEST_FIRST)
            )
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to query latest backup record: {e}") from e
        return BackupRecord.from_document(document) if document else None

    async def mark_restored(self, path: str, restored_at: datetime) -> bool:
        try:
            result = await self._run(lambda c: c.update_one(
                {
                    "path": path,
                    "status": {"$in": [BackupStatus.CREATED.value, BackupStatus.RESTORED.value]},
                },
                {"$set": {"status": BackupStatus.RESTORED.value, "restoredAt": restored_at}},
            ))
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to mark {path} as restored: {e}") from e
        return result.matched_count > 0

    async def mark_failed(self, path: str) -> bool:
        try:
            result = await self._run(lambda c: c.update_one(
                {"path": path, "status": BackupStatus.CREATED.value},
                {"$set": {"status": BackupStatus.FAILED.value}},
            ))
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to mark {path} as failed: {e}") from e
        return result.matched_count > 0

    async def list_records(self) -> List[BackupRecord]:
        try:
            documents = await self._run(lambda c: c.find({}).sort(_NEWEST_FIRST).to_list(None))
        except PyMongoError as e:
            raise RecordStoreError(f"Failed to list backup records: {e}") from e
        return [BackupRecord.from_document(d) for d in documents]
