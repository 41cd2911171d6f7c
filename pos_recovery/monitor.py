"""Monitoring loop: signal -> operator confirmation -> backup or restore."""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Optional, Set

from ._utils import logger
from .backup.engine import BackupEngine, RestoreEngine
from .confirmation.gate import BaseConfirmationGate, ConfirmationContext
from .detectors.base import BaseSignalDetector
from .errors import (
    ConfirmationTimeout,
    DetectorError,
    ExternalToolError,
    NoBackupAvailable,
    RecordInconsistencyError,
    RecordStoreError,
    RecoveryError,
)


class MonitorState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    CONFIRMING = "confirming"
    ACTING = "acting"


class CycleOutcome(str, Enum):
    DROPPED = "dropped"
    SKIPPED = "skipped"
    NORMAL = "normal"
    UNCONFIRMED = "unconfirmed"
    BACKED_UP = "backed_up"
    RESTORED = "restored"
    FAILED = "failed"


class Orchestrator:
    """Runs at most one check/confirm/act cycle at a time.

    A trigger that arrives while a cycle is in flight is dropped and counted
    in ``dropped_triggers``; it is never queued.
    """

    def __init__(
        self,
        detector: BaseSignalDetector,
        gate: BaseConfirmationGate,
        backup_engine: BackupEngine,
        restore_engine: RestoreEngine,
        interval: float = 300.0,
    ):
        self.detector = detector
        self.gate = gate
        self.backup_engine = backup_engine
        self.restore_engine = restore_engine
        self.interval = interval

        self.state = MonitorState.IDLE
        self.cycles_started = 0
        self.dropped_triggers = 0
        self._pending: Set[asyncio.Task] = set()

    @asynccontextmanager
    async def _single_flight(self):
        self.state = MonitorState.CHECKING
        self.cycles_started += 1
        try:
            yield
        finally:
            self.state = MonitorState.IDLE

    async def run_cycle(self) -> CycleOutcome:
        """One Checking -> Confirming -> Acting pass; never raises on cycle errors."""
        # No await between this check and _single_flight setting the state
        if self.state != MonitorState.IDLE:
            self.dropped_triggers += 1
            logger.info(f"Cycle already {self.state.value}, trigger dropped")
            return CycleOutcome.DROPPED

        async with self._single_flight():
            try:
                outcome = await self._check_confirm_act()
            except Exception:
                logger.exception("Unexpected error in monitoring cycle")
                outcome = CycleOutcome.FAILED

        logger.debug(f"Cycle finished: {outcome.value}")
        return outcome

    async def _check_confirm_act(self) -> CycleOutcome:
        try:
            abnormal = await self.detector.evaluate()
        except DetectorError as e:
            logger.error(f"[{e.kind}] Skipping cycle, signal unavailable: {e}")
            return CycleOutcome.SKIPPED

        if not abnormal:
            return CycleOutcome.NORMAL

        logger.warning(f"Abnormality detected: {self.detector.reason}")
        self.state = MonitorState.CONFIRMING
        try:
            has_problem = await self.gate.confirm(ConfirmationContext(reason=self.detector.reason))
        except ConfirmationTimeout as e:
            logger.warning(f"[{e.kind}] No operator decision, taking no action: {e}")
            return CycleOutcome.UNCONFIRMED

        self.state = MonitorState.ACTING
        try:
            if has_problem:
                record = await self.restore_engine.restore_latest()
                logger.info(f"System restored from {record.path}")
                return CycleOutcome.RESTORED

            record = await self.backup_engine.create_backup()
            logger.info(f"Preventive backup created: {record.path}")
            return CycleOutcome.BACKED_UP
        except NoBackupAvailable as e:
            logger.error(f"[{e.kind}] Nothing to restore: {e}")
        except ExternalToolError as e:
            logger.error(f"[{e.kind}] {e}")
        except RecordInconsistencyError as e:
            logger.critical(f"[{e.kind}] Backup records may not match the archives on disk: {e}")
        except RecordStoreError as e:
            logger.error(f"[{e.kind}] Record store unavailable, nothing was changed: {e}")
        except RecoveryError as e:
            logger.error(f"[{e.kind}] {e}")
        return CycleOutcome.FAILED

    def trigger(self) -> asyncio.Task:
        """Start a cycle in the background (event-driven scheduling)."""
        task = asyncio.create_task(self.run_cycle())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def run_polling(self) -> None:
        logger.info(f"Starting polling monitor (every {self.interval:g}s)")
        while True:
            await self.run_cycle()
            await asyncio.sleep(self.interval)

    async def run_event_driven(self, transitions: AsyncIterator[bool]) -> None:
        """Start a cycle whenever the signal becomes active."""
        logger.info("Starting event-driven monitor")
        try:
            async for active in transitions:
                if active:
                    self.trigger()
        finally:
            if self._pending:
                await asyncio.gather(*self._pending, return_exceptions=True)

    async def run(self, transitions: Optional[AsyncIterator[bool]] = None) -> None:
        if transitions is None and hasattr(self.detector, "transitions"):
            transitions = self.detector.transitions()
        if transitions is not None:
            await self.run_event_driven(transitions)
        else:
            await self.run_polling()
