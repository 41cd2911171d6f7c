from .config import RecoveryConfig
from .monitor import CycleOutcome, MonitorState, Orchestrator

__version__ = "0.1.0"
__author__ = "pos-recovery contributors"

__all__ = ["RecoveryConfig", "CycleOutcome", "MonitorState", "Orchestrator"]
