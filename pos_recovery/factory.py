"""Build the recovery components selected by configuration."""

from datetime import timedelta
from typing import Optional

from ._storage import JsonBackupRecordStore, MongoBackupRecordStore
from .backup.engine import BackupEngine, FilesystemResolver, RecordStoreResolver, RestoreEngine
from .backup.tools import MongoToolRunner
from .backup.upload import S3Uploader
from .base import BaseBackupRecordStore
from .config import RecoveryConfig
from .confirmation import (
    AuthorizedConfirmationGate,
    BaseConfirmationGate,
    SimpleConfirmationGate,
    TerminalChannel,
    ZenityChannel,
)
from .detectors import ActivityAbsenceDetector, BaseSignalDetector, IdleSignalDetector
from .monitor import Orchestrator

RECORDS_FILE_NAME = "records.json"


def create_record_store(config: RecoveryConfig) -> BaseBackupRecordStore:
    if config.backup.record_backend == "json":
        return JsonBackupRecordStore(file_path=config.backup.backup_root / RECORDS_FILE_NAME)
    return MongoBackupRecordStore(
        uri=config.mongo.uri,
        collection_name=config.mongo.backups_collection,
        server_selection_timeout_ms=config.mongo.server_selection_timeout_ms,
    )


def create_tool_runner(config: RecoveryConfig) -> MongoToolRunner:
    return MongoToolRunner(
        dump_bin=config.tools.dump_bin,
        restore_bin=config.tools.restore_bin,
        container=config.tools.container,
        container_runtime=config.tools.container_runtime,
        timeout=config.tools.timeout,
    )


def create_uploader(config: RecoveryConfig) -> Optional[S3Uploader]:
    if not config.upload.enabled:
        return None
    return S3Uploader(
        bucket=config.upload.bucket,
        endpoint_url=config.upload.endpoint_url,
        access_key_id=config.upload.access_key_id,
        secret_access_key=config.upload.secret_access_key,
        region=config.upload.region,
        tenant=config.upload.tenant,
    )


def create_backup_engine(config: RecoveryConfig, store: BaseBackupRecordStore) -> BackupEngine:
    return BackupEngine(
        store=store,
        runner=create_tool_runner(config),
        uri=config.mongo.uri,
        backup_root=config.backup.backup_root,
        uploader=create_uploader(config),
    )


def create_restore_engine(config: RecoveryConfig, store: BaseBackupRecordStore) -> RestoreEngine:
    if config.backup.restore_resolution == "filesystem":
        resolver = FilesystemResolver(config.backup.backup_root)
    else:
        resolver = RecordStoreResolver(store)
    return RestoreEngine(runner=create_tool_runner(config), uri=config.mongo.uri, resolver=resolver)


def create_detector(config: RecoveryConfig) -> BaseSignalDetector:
    if config.monitor.signal == "idle":
        return IdleSignalDetector(
            bus_name=config.monitor.screensaver_bus_name,
            path=config.monitor.screensaver_path,
            interface=config.monitor.screensaver_interface,
        )
    return ActivityAbsenceDetector(
        uri=config.mongo.uri,
        collection=config.mongo.sales_collection,
        lookback=timedelta(seconds=config.monitor.lookback_seconds),
        server_selection_timeout_ms=config.mongo.server_selection_timeout_ms,
    )


def create_gate(config: RecoveryConfig) -> BaseConfirmationGate:
    confirmation = config.confirmation
    if confirmation.channel == "terminal":
        channel = TerminalChannel()
    else:
        channel = ZenityChannel(zenity_bin=confirmation.zenity_bin, timeout=confirmation.dialog_timeout)

    if confirmation.gate == "authorized":
        return AuthorizedConfirmationGate(channel, secret=confirmation.auth_secret)
    return SimpleConfirmationGate(channel)


def create_orchestrator(config: RecoveryConfig) -> Orchestrator:
    store = create_record_store(config)
    return Orchestrator(
        detector=create_detector(config),
        gate=create_gate(config),
        backup_engine=create_backup_engine(config, store),
        restore_engine=create_restore_engine(config, store),
        interval=float(config.monitor.lookback_seconds),
    )
