# sshsync Sync Engine
# Plan and execute flushed batches with console reporting

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from sshsync.sync.actions import ExecutionResult, OperationType, Partition, SyncOperation
from sshsync.sync.executor import SyncExecutor
from sshsync.sync.planner import ClassifiedBatch, SyncPlanner

if TYPE_CHECKING:
    from sshsync.output.console import Console


@dataclass
class BatchResult:
    """Result of syncing one flushed batch."""

    batch: ClassifiedBatch
    results: list[ExecutionResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def operations(self) -> list[SyncOperation]:
        return [result.operation for result in self.results]


class SyncEngine:
    """
    Turn a batch of changed paths into executed operations.

    Runs strictly one operation at a time. Failed operations are reported
    and the batch is still considered processed.
    """

    def __init__(self, planner: SyncPlanner, executor: SyncExecutor, console: Console):
        """
        Initialize sync engine.

        Args:
            planner: Classifies paths and picks operations.
            executor: Runs operations.
            console: Output for progress lines.
        """
        self.planner = planner
        self.executor = executor
        self.console = console

    def full_sync(self, message: str = "Doing initial rsync ...") -> ExecutionResult:
        """
        Upload the whole local root.

        Args:
            message: Progress text printed before the transfer.

        Returns:
            ExecutionResult of the transfer.
        """
        self.console.print_info(message, newline=False)
        result = self.executor.full_sync(reason=message)
        self.console.print_result(result)
        return result

    def sync_batch(self, paths: Iterable[str]) -> BatchResult:
        """
        Classify, plan and execute one flushed batch.

        Args:
            paths: Relative paths from the aggregator.

        Returns:
            BatchResult with one ExecutionResult per operation.
        """
        batch = self.planner.classify(paths)

        for path in batch.updated:
            self.console.print_change(path)
        for path in batch.deleted:
            self.console.print_change(path, deleted=True)

        result = BatchResult(batch=batch)
        for operation in self.planner.plan(batch):
            result.results.append(self._run(operation, batch))

        return result

    def _run(self, operation: SyncOperation, batch: ClassifiedBatch) -> ExecutionResult:
        if operation.partition == Partition.DELETED:
            announce = f"Deleting {len(batch.deleted)} file(s)"
        else:
            announce = f"Uploading {len(batch.updated)} file(s)"

        if operation.op_type == OperationType.FULL_RESYNC:
            self.console.print_info(announce)
            self.console.print_info(f"{operation.reason} ...", newline=False)
        else:
            self.console.print_info(announce, newline=False)

        result = self.executor.execute(operation)
        self.console.print_result(result)
        return result
