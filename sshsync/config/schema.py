# sshsync Configuration Schema
# Pydantic models for YAML configuration validation

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONTROL_PATH = "/tmp/sshsync-%L-%r@%h:%p"

DEFAULT_WATCH_EVENTS = [
    "modify",
    "attrib",
    "close_write",
    "moved_from",
    "moved_to",
    "create",
    "delete",
]


class ConnectionConfig(BaseModel):
    """Settings for the persistent ssh master connection."""

    identity_file: str | None = Field(default=None, description="Private key passed to ssh with -i")
    connect_timeout: int = Field(default=5, ge=1, description="ConnectTimeout and ServerAliveInterval in seconds")
    ready_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the master to report readiness. None = connect_timeout.",
    )
    control_path: str = Field(default=DEFAULT_CONTROL_PATH, description="ssh ControlPath for multiplexing")
    ssh_command: str = Field(default="ssh", description="ssh executable")

    @field_validator("identity_file")
    @classmethod
    def expand_identity_file(cls, v: str | None) -> str | None:
        """Expand ~ in the identity file path."""
        if v is None:
            return None
        return str(Path(v).expanduser())

    @property
    def effective_ready_timeout(self) -> float:
        """Readiness timeout, falling back to the connect timeout."""
        return self.ready_timeout if self.ready_timeout is not None else float(self.connect_timeout)


class TransferConfig(BaseModel):
    """Settings for rsync transfers and remote removals."""

    rsync_command: str = Field(default="rsync", description="rsync executable")
    rsync_args: str = Field(default="", description="Extra rsync arguments (shell syntax)")
    exclude: list[str] = Field(default_factory=list, description="Glob patterns never synced")
    full_sync_threshold: int = Field(
        default=200,
        ge=1,
        description="Batch size at which a partition falls back to a full-tree resync",
    )


class WatchConfig(BaseModel):
    """Settings for the watcher process and the watch loop timing."""

    watcher_command: str = Field(default="inotifywait", description="inotifywait executable")
    events: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WATCH_EVENTS),
        description="inotify events to watch. Empty list = all events.",
    )
    poll_interval: float = Field(default=0.3, gt=0, description="Seconds to wait for an event before flushing")
    max_batch_delay: float | None = Field(
        default=10.0,
        gt=0,
        description="Flush at the latest this many seconds after the first pending change. None = only on idle.",
    )
    health_check_interval: float = Field(default=3.0, gt=0, description="Seconds between session health checks")
    restart_delay: float = Field(default=3.0, ge=0, description="Seconds to wait before reconnecting")

    @field_validator("events")
    @classmethod
    def normalize_events(cls, v: list[str]) -> list[str]:
        """inotifywait event names are lower case."""
        return [event.strip().lower() for event in v if event.strip()]


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Print external commands before running them")
    colored: bool = Field(default=True, description="Enable colored output")


class SshSyncConfig(BaseModel):
    """Root configuration model for sshsync."""

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig, description="ssh settings")
    transfer: TransferConfig = Field(default_factory=TransferConfig, description="rsync settings")
    watch: WatchConfig = Field(default_factory=WatchConfig, description="Watch loop settings")
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")


class SyncTarget(BaseModel):
    """Local tree and remote location to keep mirrored."""

    local_root: Path = Field(description="Local directory to watch")
    remote_address: str = Field(min_length=1, description="Remote host, optionally user@host")
    remote_dir: str = Field(min_length=1, description="Remote directory receiving the mirror")

    @field_validator("local_root")
    @classmethod
    def expand_local_root(cls, v: Path) -> Path:
        """Expand ~ and make the local root absolute."""
        return Path(v).expanduser().absolute()

    @field_validator("remote_address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        """Reject blank host names."""
        v = v.strip()
        if not v:
            raise ValueError("remote address must not be empty")
        return v

    @field_validator("remote_dir")
    @classmethod
    def strip_trailing_separator(cls, v: str) -> str:
        """Remote directory is stored without a trailing slash ("/" stays "/")."""
        stripped = v.rstrip("/")
        if not stripped:
            if v.startswith("/"):
                return "/"
            raise ValueError("remote directory must not be empty")
        return stripped

    @property
    def remote_path(self) -> str:
        """rsync destination, e.g. user@host:/srv/app/."""
        if self.remote_dir == "/":
            return f"{self.remote_address}:/"
        return f"{self.remote_address}:{self.remote_dir}/"
