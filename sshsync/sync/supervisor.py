# sshsync Supervisor Loop
# Connect, mirror, watch, and reconnect until asked to stop

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sshsync.config.schema import SshSyncConfig, SyncTarget
from sshsync.ssh.session import ConnectionSupervisor
from sshsync.sync.aggregator import ChangeAggregator
from sshsync.sync.engine import SyncEngine
from sshsync.sync.exclude import ExclusionMatcher
from sshsync.sync.executor import SyncExecutor
from sshsync.sync.planner import SyncPlanner
from sshsync.sync.watcher import InotifyWatcher, WatcherError

if TYPE_CHECKING:
    from sshsync.output.console import Console


class LoopState(str, Enum):
    """Supervisor loop states."""

    IDLE = "idle"
    CONNECTING = "connecting"
    WATCHING = "watching"
    STOPPED = "stopped"


class SyncSupervisor:
    """
    Top-level control loop.

    Each cycle opens the ssh master, does a full baseline sync, then
    watches the local tree and syncs flushed batches until the session is
    lost or the watcher dies. The loop then waits restart_delay seconds and
    starts over. Only request_stop() ends it.

    request_stop() only sets a flag, so a signal handler may call it at any
    point. The loop checks the flag once per poll interval (the restart wait
    sleeps in poll-sized slices) and then runs shutdown(), the single
    teardown routine.
    """

    def __init__(
        self,
        session: ConnectionSupervisor,
        engine: SyncEngine,
        aggregator: ChangeAggregator,
        watcher_factory: Callable[[], InotifyWatcher],
        console: Console,
        *,
        poll_interval: float = 0.3,
        health_check_interval: float = 3.0,
        restart_delay: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize supervisor.

        Args:
            session: Owner of the ssh master connection.
            engine: Executes flushed batches.
            aggregator: Collects watcher events between flushes.
            watcher_factory: Creates a fresh watcher for each cycle.
            console: Output for progress lines.
            poll_interval: Seconds to wait for a watcher line before flushing.
            health_check_interval: Seconds between session health checks.
            restart_delay: Seconds to wait before the next cycle.
            clock: Monotonic time source.
            sleep: Blocking sleep used between cycles.
        """
        self.session = session
        self.engine = engine
        self.aggregator = aggregator
        self.watcher_factory = watcher_factory
        self.console = console
        self.poll_interval = poll_interval
        self.health_check_interval = health_check_interval
        self.restart_delay = restart_delay
        self._clock = clock
        self._sleep = sleep

        self.state = LoopState.IDLE
        self.cycles = 0
        self._stop_requested = False
        self._shut_down = False
        self._watcher: Optional[InotifyWatcher] = None

    @classmethod
    def from_config(cls, target: SyncTarget, config: SshSyncConfig, console: Console) -> "SyncSupervisor":
        """
        Wire up every component for one sync target.

        Args:
            target: Local root and remote destination.
            config: Validated configuration.
            console: Output for progress lines.

        Returns:
            Ready-to-run supervisor.
        """
        matcher = ExclusionMatcher(config.transfer.exclude)
        session = ConnectionSupervisor.from_config(target.remote_address, config.connection)
        executor = SyncExecutor(target, session, config.transfer, matcher=matcher, console=console)
        planner = SyncPlanner(target.local_root, threshold=config.transfer.full_sync_threshold)
        aggregator = ChangeAggregator(target.local_root, matcher, max_delay=config.watch.max_batch_delay)

        def watcher_factory() -> InotifyWatcher:
            return InotifyWatcher(
                target.local_root,
                command=config.watch.watcher_command,
                events=config.watch.events,
            )

        return cls(
            session,
            SyncEngine(planner, executor, console),
            aggregator,
            watcher_factory,
            console,
            poll_interval=config.watch.poll_interval,
            health_check_interval=config.watch.health_check_interval,
            restart_delay=config.watch.restart_delay,
        )

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Ask the loop to stop at its next poll point."""
        self._stop_requested = True

    def run(self) -> None:
        """Run cycles until a stop is requested, then tear everything down."""
        try:
            while not self._stop_requested:
                self.run_cycle()
                if self._stop_requested:
                    break
                self.console.print_info("Restarting ...")
                self._pause(self.restart_delay)
        finally:
            self.shutdown()

    def run_cycle(self) -> None:
        """Open a session and watch until it is lost. Always ends in IDLE (or STOPPED)."""
        self.cycles += 1
        self.state = LoopState.CONNECTING

        self.console.print_info("Opening master connection ... ", newline=False)
        if not self.session.open():
            self.console.finish_line(f"failed ({self.session.last_error})", style="red")
            self._enter_idle()
            return
        self.console.finish_line("done", style="green")

        self.state = LoopState.WATCHING
        try:
            # The baseline sync covers anything left over from the previous cycle
            self.aggregator.flush()
            self.engine.full_sync()
            if not self._stop_requested:
                self._watch()
        finally:
            try:
                self._stop_watcher()
            finally:
                self.session.close()
                self._enter_idle()

    def shutdown(self) -> None:
        """Stop the loop and release the watcher and session. Runs once."""
        if self._shut_down:
            return
        self._shut_down = True
        self._stop_requested = True
        self.state = LoopState.STOPPED

        try:
            self.console.print_info("Shutting down ...")
        finally:
            try:
                self._stop_watcher()
            finally:
                self.session.close()

    def _pause(self, seconds: float) -> None:
        """Sleep for up to seconds, returning early once a stop is requested."""
        remaining = seconds
        while remaining > 0 and not self._stop_requested:
            step = min(self.poll_interval, remaining)
            self._sleep(step)
            remaining -= step

    def _watch(self) -> None:
        watcher = self.watcher_factory()
        self._watcher = watcher
        try:
            watcher.start()
        except WatcherError as e:
            self.console.print_error(e.message)
            return
        self.console.print_info("Started inotify monitor")

        last_check = self._clock()
        while not self._stop_requested:
            now = self._clock()
            if now - last_check >= self.health_check_interval:
                if not self.session.health_check():
                    self.console.print_warning("Restarting master connection")
                    return
                last_check = now

            try:
                line = watcher.read_line(self.poll_interval)
            except WatcherError as e:
                self.console.print_error(e.message)
                return

            if line is None:
                self._flush()
                continue

            self.aggregator.accept_line(line)
            if self.aggregator.window_expired():
                self._flush()

    def _flush(self) -> None:
        paths = self.aggregator.flush()
        if paths:
            self.engine.sync_batch(paths)

    def _stop_watcher(self) -> None:
        watcher = self._watcher
        if watcher is None:
            return
        self._watcher = None
        try:
            self.console.print_info("Closing inotify proc ... ", newline=False)
        finally:
            watcher.stop()
        self.console.finish_line("done")

    def _enter_idle(self) -> None:
        if self.state != LoopState.STOPPED:
            self.state = LoopState.IDLE
