# Tests for sshsync.cli
# CLI entry point using Click testing

import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from sshsync.cli import cli, install_signal_handlers, split_excludes
from sshsync.sync.supervisor import SyncSupervisor


@pytest.fixture
def mock_supervisor():
    """Patch supervisor construction and signal installation."""
    with patch("sshsync.cli.SyncSupervisor") as mock_cls, patch("sshsync.cli.install_signal_handlers") as mock_signals:
        supervisor = MagicMock()
        mock_cls.from_config.return_value = supervisor
        yield mock_cls, supervisor, mock_signals


class TestCliBasics:
    """Tests for help, version and argument validation."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "LOCAL_DIR" in result.output
        assert "--exclude" in result.output
        assert "--identity-file" in result.output

    def test_short_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["-h"])
        assert result.exit_code == 0

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "sshsync" in result.output

    def test_missing_arguments(self):
        runner = CliRunner()
        result = runner.invoke(cli, [])
        assert result.exit_code == 2

    def test_missing_local_dir(self, temp_dir: Path):
        runner = CliRunner()
        result = runner.invoke(cli, [str(temp_dir / "nope"), "host", "/srv/app"])
        assert result.exit_code == 2

    def test_invalid_timeout(self, local_tree: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["-t", "0", str(local_tree), "host", "/srv/app"])
        assert result.exit_code == 2

    def test_blank_remote_host(self, local_tree: Path, temp_home: Path, mock_supervisor):
        runner = CliRunner()
        result = runner.invoke(cli, [str(local_tree), "  ", "/srv/app"])
        assert result.exit_code == 2


class TestCliRun:
    """Tests for starting the supervisor."""

    def test_starts_supervisor(self, local_tree: Path, temp_home: Path, mock_supervisor):
        mock_cls, supervisor, mock_signals = mock_supervisor
        runner = CliRunner()
        result = runner.invoke(cli, [str(local_tree), "dev@build01", "/srv/app"])

        assert result.exit_code == 0, result.output
        target, config, console = mock_cls.from_config.call_args[0]
        assert target.local_root == local_tree
        assert target.remote_path == "dev@build01:/srv/app/"
        assert config.connection.connect_timeout == 5
        mock_signals.assert_called_once_with(supervisor)
        supervisor.run.assert_called_once()
        assert f"Syncing {local_tree} -> dev@build01:/srv/app/" in result.output

    def test_options_override_config(self, local_tree: Path, config_file: Path, mock_supervisor):
        mock_cls, supervisor, mock_signals = mock_supervisor
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "-i", "/keys/id_build",
                "--rsync-args=--chmod=D755",
                "-e", "node_modules/*|*.swp",
                "-t", "11",
                str(local_tree),
                "host",
                "/srv/app",
            ],
        )

        assert result.exit_code == 0, result.output
        config = mock_cls.from_config.call_args[0][1]
        assert config.connection.identity_file == "/keys/id_build"
        assert config.connection.connect_timeout == 11
        assert config.transfer.rsync_args == "--chmod=D755"
        # Command line patterns extend the configured ones
        assert config.transfer.exclude == [".git/*", "*.swp", "node_modules/*"]
        assert "Excluding: .git/* | *.swp | node_modules/*" in result.output

    def test_explicit_config(self, local_tree: Path, temp_home: Path, temp_dir: Path, mock_supervisor):
        mock_cls, supervisor, mock_signals = mock_supervisor
        path = temp_dir / "custom.yaml"
        path.write_text("watch:\n  restart_delay: 0.5\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(path), str(local_tree), "host", "/srv/app"])

        assert result.exit_code == 0, result.output
        assert mock_cls.from_config.call_args[0][1].watch.restart_delay == 0.5

    def test_verbose_and_no_color(self, local_tree: Path, temp_home: Path, mock_supervisor):
        mock_cls, supervisor, mock_signals = mock_supervisor
        runner = CliRunner()
        result = runner.invoke(cli, ["-v", "--no-color", str(local_tree), "host", "/srv/app"])

        assert result.exit_code == 0, result.output
        config, console = mock_cls.from_config.call_args[0][1:]
        assert config.output.verbose is True
        assert config.output.colored is False
        assert console.verbose is True

    def test_invalid_config(self, local_tree: Path, temp_home: Path, temp_dir: Path, mock_supervisor):
        mock_cls, supervisor, mock_signals = mock_supervisor
        path = temp_dir / "bad.yaml"
        path.write_text("connection:\n  connect_timeout: zero\n", encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cli, ["-c", str(path), str(local_tree), "host", "/srv/app"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        mock_cls.from_config.assert_not_called()


class TestHelpers:
    """Tests for CLI helper functions."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, []),
            ("", []),
            ("*.swp", ["*.swp"]),
            (".git/*|*.swp||build/*", [".git/*", "*.swp", "build/*"]),
        ],
    )
    def test_split_excludes(self, value, expected):
        assert split_excludes(value) == expected

    def test_install_signal_handlers(self):
        supervisor = MagicMock()
        with patch("sshsync.cli.signal.signal") as mock_signal:
            install_signal_handlers(supervisor)

        installed = {call.args[0]: call.args[1] for call in mock_signal.call_args_list}
        assert set(installed) == {signal.SIGINT, signal.SIGTERM}

        installed[signal.SIGINT](signal.SIGINT, None)
        supervisor.request_stop.assert_called_once()

    def test_signal_handler_only_flags_supervisor(self):
        supervisor = SyncSupervisor(MagicMock(), MagicMock(), MagicMock(), MagicMock(), MagicMock())
        with patch("sshsync.cli.signal.signal") as mock_signal:
            install_signal_handlers(supervisor)

        handler = mock_signal.call_args_list[-1].args[1]
        handler(signal.SIGTERM, None)

        assert supervisor.stop_requested
        supervisor.session.close.assert_not_called()
