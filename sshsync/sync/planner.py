# sshsync Sync Planner
# Classify flushed paths and choose incremental or full-tree sync

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from sshsync.sync.actions import OperationType, Partition, SyncOperation

FULL_SYNC_THRESHOLD = 200


@dataclass
class ClassifiedBatch:
    """Flushed paths split by whether they currently exist locally."""

    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.deleted)

    @property
    def is_empty(self) -> bool:
        return not self.updated and not self.deleted


class SyncPlanner:
    """
    Decide what to run for a batch of changed paths.

    Existence on disk at flush time is authoritative; the kind of the
    events that put a path into the batch is not consulted.
    """

    def __init__(self, local_root: Path, *, threshold: int = FULL_SYNC_THRESHOLD):
        """
        Initialize planner.

        Args:
            local_root: Watched root directory.
            threshold: Partition size at which a full-tree resync replaces the path list.
        """
        self.local_root = local_root
        self.threshold = threshold

    def classify(self, paths: Iterable[str]) -> ClassifiedBatch:
        """
        Partition paths into updated and deleted.

        Args:
            paths: Relative paths from one flush.

        Returns:
            ClassifiedBatch with every distinct path in exactly one group.
        """
        batch = ClassifiedBatch()
        seen: set[str] = set()

        for path in paths:
            if path in seen:
                continue
            seen.add(path)

            if os.path.exists(self.local_root / path):
                batch.updated.append(path)
            else:
                batch.deleted.append(path)

        return batch

    def plan(self, batch: ClassifiedBatch) -> list[SyncOperation]:
        """
        Choose operations for a classified batch.

        Updates are planned before deletions. Each non-empty group becomes
        either one operation over its paths or, at or above the threshold,
        one full-tree resync.

        Args:
            batch: Classified paths.

        Returns:
            Operations in execution order.
        """
        operations: list[SyncOperation] = []

        if batch.updated:
            if len(batch.updated) < self.threshold:
                operations.append(SyncOperation(OperationType.TRANSFER, list(batch.updated), partition=Partition.UPDATED))
            else:
                operations.append(
                    SyncOperation(
                        OperationType.FULL_RESYNC,
                        reason="Too many files to upload, doing full rsync",
                        partition=Partition.UPDATED,
                    )
                )

        if batch.deleted:
            if len(batch.deleted) < self.threshold:
                operations.append(SyncOperation(OperationType.REMOVE, list(batch.deleted), partition=Partition.DELETED))
            else:
                operations.append(
                    SyncOperation(
                        OperationType.FULL_RESYNC,
                        reason="Too many files to delete, doing full rsync",
                        partition=Partition.DELETED,
                    )
                )

        return operations
