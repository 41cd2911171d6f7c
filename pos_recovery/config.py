"""Configuration management for pos-recovery."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class MongoConfig:
    """Point-of-sale MongoDB connection and collections."""
    uri: str = "mongodb://localhost:27017/tocgame"
    sales_collection: str = "sales"
    backups_collection: str = "backups"
    server_selection_timeout_ms: int = 5000

    @classmethod
    def from_env(cls) -> 'MongoConfig':
        """Create config from environment variables."""
        return cls(
            uri=os.getenv("MONGO_URI", "mongodb://localhost:27017/tocgame"),
            sales_collection=os.getenv("MONGO_SALES_COLLECTION", "sales"),
            backups_collection=os.getenv("MONGO_BACKUPS_COLLECTION", "backups"),
            server_selection_timeout_ms=int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.uri.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"uri must be a mongodb:// or mongodb+srv:// URI, got {self.uri}")
        if self.server_selection_timeout_ms <= 0:
            raise ValueError(
                f"server_selection_timeout_ms must be positive, got {self.server_selection_timeout_ms}"
            )


@dataclass(frozen=True)
class BackupConfig:
    """Backup archive location and bookkeeping."""
    product: str = "tocgamedb"
    root: Optional[str] = None  # defaults to ~/backups/<product>
    record_backend: str = "mongo"  # mongo, json
    restore_resolution: str = "records"  # records, filesystem

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            product=os.getenv("RECOVERY_PRODUCT", "tocgamedb"),
            root=os.getenv("RECOVERY_BACKUP_ROOT", None),
            record_backend=os.getenv("RECOVERY_RECORD_BACKEND", "mongo"),
            restore_resolution=os.getenv("RECOVERY_RESTORE_RESOLUTION", "records"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_record_backends = {"mongo", "json"}
        valid_resolutions = {"records", "filesystem"}

        if not self.product or "/" in self.product:
            raise ValueError(f"product must be a plain directory name, got {self.product!r}")
        if self.record_backend not in valid_record_backends:
            raise ValueError(
                f"Unknown record backend: {self.record_backend}. Available: {valid_record_backends}"
            )
        if self.restore_resolution not in valid_resolutions:
            raise ValueError(
                f"Unknown restore resolution: {self.restore_resolution}. Available: {valid_resolutions}"
            )

    @property
    def backup_root(self) -> Path:
        if self.root:
            return Path(self.root).expanduser()
        return Path.home() / "backups" / self.product


@dataclass(frozen=True)
class ToolConfig:
    """mongodump / mongorestore invocation."""
    dump_bin: str = "mongodump"
    restore_bin: str = "mongorestore"
    container: Optional[str] = None  # run the tools through `<runtime> exec` when set
    container_runtime: str = "docker"
    timeout: float = 0.0  # seconds, 0 disables

    @classmethod
    def from_env(cls) -> 'ToolConfig':
        """Create config from environment variables."""
        return cls(
            dump_bin=os.getenv("MONGODUMP_BIN", "mongodump"),
            restore_bin=os.getenv("MONGORESTORE_BIN", "mongorestore"),
            container=os.getenv("RECOVERY_CONTAINER", None) or None,
            container_runtime=os.getenv("RECOVERY_CONTAINER_RUNTIME", "docker"),
            timeout=float(os.getenv("RECOVERY_TOOL_TIMEOUT", "0")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {self.timeout}")
        if self.timeout and self.container:
            raise ValueError(
                "RECOVERY_TOOL_TIMEOUT cannot be combined with RECOVERY_CONTAINER: "
                "killing the exec client would leave the tool running inside the container"
            )


@dataclass(frozen=True)
class ConfirmationConfig:
    """Operator confirmation gate and channel."""
    gate: str = "simple"  # simple, authorized
    channel: str = "zenity"  # zenity, terminal
    auth_secret: Optional[str] = field(default=None, repr=False)
    dialog_timeout: int = 0  # seconds, 0 waits forever
    zenity_bin: str = "zenity"

    @classmethod
    def from_env(cls) -> 'ConfirmationConfig':
        """Create config from environment variables."""
        return cls(
            gate=os.getenv("RECOVERY_GATE", "simple"),
            channel=os.getenv("RECOVERY_CHANNEL", "zenity"),
            auth_secret=os.getenv("RECOVERY_AUTH_SECRET", None),
            dialog_timeout=int(os.getenv("RECOVERY_DIALOG_TIMEOUT", "0")),
            zenity_bin=os.getenv("ZENITY_BIN", "zenity"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_gates = {"simple", "authorized"}
        valid_channels = {"zenity", "terminal"}

        if self.gate not in valid_gates:
            raise ValueError(f"Unknown confirmation gate: {self.gate}. Available: {valid_gates}")
        if self.channel not in valid_channels:
            raise ValueError(f"Unknown confirmation channel: {self.channel}. Available: {valid_channels}")
        if self.gate == "authorized" and not self.auth_secret:
            raise ValueError("authorized gate requires RECOVERY_AUTH_SECRET to be set")
        if self.dialog_timeout < 0:
            raise ValueError(f"dialog_timeout must be non-negative, got {self.dialog_timeout}")


@dataclass(frozen=True)
class UploadConfig:
    """Optional S3-compatible upload of finished archives."""
    enabled: bool = False
    endpoint_url: Optional[str] = None
    bucket: Optional[str] = None
    access_key_id: Optional[str] = field(default=None, repr=False)
    secret_access_key: Optional[str] = field(default=None, repr=False)
    region: str = "us-east-1"
    tenant: str = "default"

    @classmethod
    def from_env(cls) -> 'UploadConfig':
        """Create config from environment variables."""
        return cls(
            enabled=_env_bool("RECOVERY_UPLOAD_ENABLED"),
            endpoint_url=os.getenv("S3_ENDPOINT_URL", None),
            bucket=os.getenv("S3_BUCKET", None),
            access_key_id=os.getenv("S3_ACCESS_KEY_ID", None),
            secret_access_key=os.getenv("S3_SECRET_ACCESS_KEY", None),
            region=os.getenv("S3_REGION", "us-east-1"),
            tenant=os.getenv("RECOVERY_TENANT", "default"),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.enabled and not self.bucket:
            raise ValueError("upload enabled but S3_BUCKET is not set")
        if not self.tenant or "/" in self.tenant:
            raise ValueError(f"tenant must be a non-empty key segment, got {self.tenant!r}")


@dataclass(frozen=True)
class MonitorConfig:
    """Abnormality signal and scheduling."""
    signal: str = "activity"  # activity (polled), idle (event-driven)
    lookback_seconds: int = 300
    screensaver_bus_name: str = "org.freedesktop.ScreenSaver"
    screensaver_path: str = "/org/freedesktop/ScreenSaver"
    screensaver_interface: str = "org.freedesktop.ScreenSaver"

    @classmethod
    def from_env(cls) -> 'MonitorConfig':
        """Create config from environment variables."""
        return cls(
            signal=os.getenv("RECOVERY_SIGNAL", "activity"),
            lookback_seconds=int(os.getenv("RECOVERY_LOOKBACK_SECONDS", "300")),
            screensaver_bus_name=os.getenv("SCREENSAVER_BUS_NAME", "org.freedesktop.ScreenSaver"),
            screensaver_path=os.getenv("SCREENSAVER_PATH", "/org/freedesktop/ScreenSaver"),
            screensaver_interface=os.getenv("SCREENSAVER_INTERFACE", "org.freedesktop.ScreenSaver"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_signals = {"activity", "idle"}

        if self.signal not in valid_signals:
            raise ValueError(f"Unknown signal: {self.signal}. Available: {valid_signals}")
        if self.lookback_seconds <= 0:
            raise ValueError(f"lookback_seconds must be positive, got {self.lookback_seconds}")


@dataclass(frozen=True)
class RecoveryConfig:
    """Main pos-recovery configuration."""
    mongo: MongoConfig = field(default_factory=MongoConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    tools: ToolConfig = field(default_factory=ToolConfig)
    confirmation: ConfirmationConfig = field(default_factory=ConfirmationConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> 'RecoveryConfig':
        """Create complete config from environment variables."""
        return cls(
            mongo=MongoConfig.from_env(),
            backup=BackupConfig.from_env(),
            tools=ToolConfig.from_env(),
            confirmation=ConfirmationConfig.from_env(),
            upload=UploadConfig.from_env(),
            monitor=MonitorConfig.from_env(),
            log_level=os.getenv("RECOVERY_LOG_LEVEL", "INFO"),
        )

    def __post_init__(self):
        """Validate configuration."""
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"Unknown log level: {self.log_level}. Available: {valid_log_levels}")
