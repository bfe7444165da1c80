# sshsync Sync Actions
# Operation types produced by the planner and results of running them

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Partition(str, Enum):
    """Group of a classified batch an operation was planned for."""

    UPDATED = "updated"
    DELETED = "deleted"


class OperationType(str, Enum):
    """Types of sync operations."""

    # rsync of an explicit path list
    TRANSFER = "transfer"

    # rm -rf of an explicit path list on the remote
    REMOVE = "remove"

    # rsync of the whole local root
    FULL_RESYNC = "full_resync"


@dataclass
class SyncOperation:
    """A single call to the transfer or removal collaborator."""

    op_type: OperationType
    paths: list[str] = field(default_factory=list)
    reason: str = ""
    partition: Optional[Partition] = None

    @property
    def is_full_resync(self) -> bool:
        return self.op_type == OperationType.FULL_RESYNC

    @property
    def count(self) -> int:
        return len(self.paths)


@dataclass
class ExecutionResult:
    """Outcome of running one SyncOperation."""

    operation: SyncOperation
    success: bool
    elapsed: float = 0.0
    returncode: Optional[int] = None
    error: Optional[str] = None
