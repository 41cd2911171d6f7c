from .activity import ActivityAbsenceDetector
from .base import BaseSignalDetector
from .idle import IdleSignalDetector

__all__ = ["ActivityAbsenceDetector", "BaseSignalDetector", "IdleSignalDetector"]
