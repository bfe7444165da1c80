# Tests for sshsync.sync.watcher
# inotifywait subprocess management

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sshsync.config.schema import DEFAULT_WATCH_EVENTS
from sshsync.sync.watcher import EVENT_FORMAT, InotifyWatcher, WatcherError
from sshsync.utils.streams import StreamClosed


class TestBuildCommand:
    """Tests for InotifyWatcher.build_command."""

    def test_all_events(self, temp_dir: Path):
        watcher = InotifyWatcher(temp_dir)
        assert watcher.build_command() == ["inotifywait", "-m", "-r", "-q", "--format", EVENT_FORMAT, str(temp_dir)]

    def test_event_filter(self, temp_dir: Path):
        watcher = InotifyWatcher(temp_dir, events=["modify", "delete"])
        cmd = watcher.build_command()
        assert cmd[6:10] == ["-e", "modify", "-e", "delete"]
        assert cmd[-1] == str(temp_dir)

    def test_default_events_skip_reads(self):
        assert "access" not in DEFAULT_WATCH_EVENTS
        assert "close_nowrite" not in DEFAULT_WATCH_EVENTS
        assert "open" not in DEFAULT_WATCH_EVENTS

    def test_format(self):
        assert EVENT_FORMAT == "%e %w%f"


class TestLifecycle:
    """Tests for start / read_line / stop."""

    @patch("sshsync.sync.watcher.LineReader")
    @patch("sshsync.sync.watcher.subprocess.Popen")
    def test_start_and_read(self, mock_popen, mock_reader, temp_dir: Path):
        process = MagicMock()
        process.poll.return_value = None
        mock_popen.return_value = process
        mock_reader.return_value.read_line.return_value = f"MODIFY {temp_dir}/a.txt"

        watcher = InotifyWatcher(temp_dir, command="/usr/bin/inotifywait")
        watcher.start()

        assert watcher.running
        assert mock_popen.call_args[0][0][0] == "/usr/bin/inotifywait"
        assert mock_popen.call_args.kwargs["stdout"] == subprocess.PIPE
        assert watcher.read_line(0.3) == f"MODIFY {temp_dir}/a.txt"
        mock_reader.return_value.read_line.assert_called_once_with(0.3)

    @patch("sshsync.sync.watcher.subprocess.Popen", side_effect=FileNotFoundError)
    def test_missing_binary(self, mock_popen, temp_dir: Path):
        with pytest.raises(WatcherError, match="inotify-tools"):
            InotifyWatcher(temp_dir).start()

    @patch("sshsync.sync.watcher.subprocess.Popen", side_effect=PermissionError("denied"))
    def test_start_os_error(self, mock_popen, temp_dir: Path):
        with pytest.raises(WatcherError, match="could not start"):
            InotifyWatcher(temp_dir).start()

    def test_read_before_start(self, temp_dir: Path):
        with pytest.raises(WatcherError, match="not running"):
            InotifyWatcher(temp_dir).read_line(0.1)

    @patch("sshsync.sync.watcher.LineReader")
    @patch("sshsync.sync.watcher.subprocess.Popen")
    def test_watcher_exit(self, mock_popen, mock_reader, temp_dir: Path):
        process = MagicMock()
        process.poll.return_value = 1
        mock_popen.return_value = process
        mock_reader.return_value.read_line.side_effect = StreamClosed("stream closed")

        watcher = InotifyWatcher(temp_dir)
        watcher.start()
        with pytest.raises(WatcherError) as exc:
            watcher.read_line(0.3)
        assert exc.value.returncode == 1

    @patch("sshsync.sync.watcher.LineReader")
    @patch("sshsync.sync.watcher.subprocess.Popen")
    def test_stop_is_idempotent(self, mock_popen, mock_reader, temp_dir: Path):
        process = MagicMock()
        process.poll.return_value = None
        mock_popen.return_value = process

        watcher = InotifyWatcher(temp_dir)
        watcher.start()
        watcher.stop()
        watcher.stop()

        process.terminate.assert_called_once()
        process.stdout.close.assert_called_once()
        assert not watcher.running

    @patch("sshsync.sync.watcher.LineReader")
    @patch("sshsync.sync.watcher.subprocess.Popen")
    def test_stop_kills_stuck_watcher(self, mock_popen, mock_reader, temp_dir: Path):
        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired("inotifywait", 5), 0]
        mock_popen.return_value = process

        watcher = InotifyWatcher(temp_dir)
        watcher.start()
        watcher.stop()

        process.kill.assert_called_once()
