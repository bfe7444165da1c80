# sshsync Sync Module
# Change aggregation, planning, execution and the supervisor loop

from sshsync.sync.actions import ExecutionResult, OperationType, Partition, SyncOperation
from sshsync.sync.aggregator import (
    DIRECTORY_MARKER,
    ChangeAggregator,
    ChangeEvent,
    PendingChangeSet,
    parse_event_line,
)
from sshsync.sync.engine import BatchResult, SyncEngine
from sshsync.sync.exclude import ExclusionMatcher
from sshsync.sync.executor import FULL_TREE_SOURCE, SyncExecutor
from sshsync.sync.planner import FULL_SYNC_THRESHOLD, ClassifiedBatch, SyncPlanner
from sshsync.sync.supervisor import LoopState, SyncSupervisor
from sshsync.sync.watcher import InotifyWatcher, WatcherError

__all__ = [
    # Actions
    "OperationType",
    "Partition",
    "SyncOperation",
    "ExecutionResult",
    # Exclusion
    "ExclusionMatcher",
    # Aggregation
    "DIRECTORY_MARKER",
    "ChangeEvent",
    "parse_event_line",
    "PendingChangeSet",
    "ChangeAggregator",
    # Planning
    "FULL_SYNC_THRESHOLD",
    "ClassifiedBatch",
    "SyncPlanner",
    # Execution
    "FULL_TREE_SOURCE",
    "SyncExecutor",
    "BatchResult",
    "SyncEngine",
    # Watcher
    "InotifyWatcher",
    "WatcherError",
    # Supervisor
    "LoopState",
    "SyncSupervisor",
]
