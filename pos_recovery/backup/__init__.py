from .models import BackupKind, BackupRecord, BackupStatus

__all__ = ["BackupKind", "BackupRecord", "BackupStatus"]
