"""Data models for backup bookkeeping."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .._utils import as_utc


class BackupKind(str, Enum):
    EMERGENCY = "emergency"
    SCHEDULED = "scheduled"


class BackupStatus(str, Enum):
    CREATED = "created"
    RESTORED = "restored"
    FAILED = "failed"


class BackupRecord(BaseModel):
    """One backup archive and its lifecycle state.

    Persisted with the collection's field names (``createdAt``, ``type``...);
    use :meth:`to_document` / :meth:`from_document` at the storage boundary.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(..., description="Archive location, unique per record")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp (UTC)")
    kind: BackupKind = Field(BackupKind.EMERGENCY, alias="type")
    status: BackupStatus = Field(BackupStatus.CREATED)
    restored_at: Optional[datetime] = Field(None, alias="restoredAt")

    @field_validator("created_at", "restored_at")
    @classmethod
    def _normalize_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None

    @property
    def eligible(self) -> bool:
        """Only freshly created archives are restore targets."""
        return self.status == BackupStatus.CREATED

    def to_document(self) -> Dict[str, Any]:
        document = self.model_dump(by_alias=True)
        if document["restoredAt"] is None:
            del document["restoredAt"]
        document["type"] = self.kind.value
        document["status"] = self.status.value
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "BackupRecord":
        return cls.model_validate({k: v for k, v in document.items() if k != "_id"})
