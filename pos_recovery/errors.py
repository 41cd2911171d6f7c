"""Error kinds raised by the recovery core.

Every failure an operator can observe maps to one of these classes so that
"nothing to restore", "restore tool crashed" and "bookkeeping is inconsistent
with disk" read differently in the logs.
"""

from typing import Optional


class RecoveryError(Exception):
    """Base exception for pos-recovery errors."""
    kind = "recovery_error"


class DetectorError(RecoveryError):
    """The abnormality signal could not be evaluated."""
    kind = "detector_error"


class ExternalToolError(RecoveryError):
    kind = "external_tool_error"

    def __init__(self, tool: str, returncode: Optional[int], diagnostics: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.diagnostics = diagnostics.strip()
        message = f"{tool} failed with exit code {returncode}"
        if self.diagnostics:
            message = f"{message}: {self.diagnostics}"
        super().__init__(message)


class ExternalToolTimeout(ExternalToolError):
    kind = "external_tool_timeout"

    def __init__(self, tool: str, timeout: float, diagnostics: str = ""):
        self.timeout = timeout
        super().__init__(tool, None, diagnostics)
        self.args = (f"{tool} did not finish within {timeout:g}s",)


class NoBackupAvailable(RecoveryError):
    kind = "no_backup_available"

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No backup available to restore ({source})")


class RecordStoreError(RecoveryError):
    """Backup bookkeeping could not be read or written."""
    kind = "record_store_error"


class ConfirmationChannelError(RecoveryError):
    """The confirmation surface failed for a reason other than a user cancel."""
    kind = "confirmation_channel_error"


class UploadError(RecoveryError):
    kind = "upload_error"


class RecordInconsistencyError(RecordStoreError):
    """A dump or restore succeeded but its record could not be written."""
    kind = "record_inconsistency"


class ConfirmationTimeout(RecoveryError):
    """Nobody answered the confirmation surface before its timeout."""
    kind = "confirmation_timeout"
