"""Click-based CLI for sshsync."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError

from sshsync import __version__
from sshsync.config import SshSyncConfig, SyncTarget, apply_overrides, load_config
from sshsync.output.console import create_console
from sshsync.sync.supervisor import SyncSupervisor


def split_excludes(value: Optional[str]) -> list[str]:
    """Split a pipe-separated list of glob patterns."""
    if not value:
        return []
    return [pattern for pattern in value.split("|") if pattern]


def install_signal_handlers(supervisor: SyncSupervisor) -> None:
    """Route SIGINT and SIGTERM to the supervisor's stop request."""

    def handle(signum, frame) -> None:
        supervisor.request_stop()

    signal.signal(signal.SIGINT, handle)
    signal.signal(signal.SIGTERM, handle)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="sshsync")
@click.option(
    "--identity-file",
    "-i",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Private key for ssh (passed as ssh -i)",
)
@click.option("--rsync-args", "-r", default=None, help="Extra arguments for rsync, e.g. '--chmod=D755'")
@click.option("--exclude", "-e", default=None, help="Pipe-separated globs to skip, e.g. '.git/*|*.swp'")
@click.option("--timeout", "-t", type=click.IntRange(min=1), default=None, help="ssh connect timeout in seconds (default: 5)")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file (default: ~/.config/sshsync/config.yaml)",
)
@click.option("--verbose", "-v", is_flag=True, help="Print the ssh and rsync commands being run")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.argument("local_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("remote_host")
@click.argument("remote_dir")
def cli(
    identity_file: Optional[Path],
    rsync_args: Optional[str],
    exclude: Optional[str],
    timeout: Optional[int],
    config_path: Optional[Path],
    verbose: bool,
    no_color: bool,
    local_dir: Path,
    remote_host: str,
    remote_dir: str,
) -> None:
    """sshsync - Mirror LOCAL_DIR to REMOTE_DIR on REMOTE_HOST.

    Opens a persistent ssh master connection, uploads the whole tree once,
    then pushes every change reported by inotifywait. Lost connections are
    reopened automatically. Stop with Ctrl-C.

    \b
    Examples:
      sshsync ~/src/app dev@build01 /srv/app
      sshsync -i ~/.ssh/build_ed25519 -e '.git/*|*.swp' . build01 /tmp/app
    """
    try:
        config = load_config(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # ValidationError is a ValueError
        create_console(colored=not no_color).print_error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        target = SyncTarget(local_root=local_dir, remote_address=remote_host, remote_dir=remote_dir)
    except ValidationError as e:
        raise click.BadParameter(e.errors()[0]["msg"], param_hint="REMOTE_HOST / REMOTE_DIR")

    config = _merge_cli_options(
        config,
        identity_file=identity_file,
        rsync_args=rsync_args,
        exclude=exclude,
        timeout=timeout,
        verbose=verbose,
        no_color=no_color,
    )

    console = create_console(verbose=config.output.verbose, colored=config.output.colored)
    console.print_info(f"Syncing {target.local_root} -> {target.remote_path}")
    if config.transfer.exclude:
        console.print_info(f"Excluding: {' | '.join(config.transfer.exclude)}")

    supervisor = SyncSupervisor.from_config(target, config, console)
    install_signal_handlers(supervisor)
    supervisor.run()


def _merge_cli_options(
    config: SshSyncConfig,
    *,
    identity_file: Optional[Path],
    rsync_args: Optional[str],
    exclude: Optional[str],
    timeout: Optional[int],
    verbose: bool,
    no_color: bool,
) -> SshSyncConfig:
    """Apply command line flags on top of the file configuration."""
    excludes = config.transfer.exclude + [p for p in split_excludes(exclude) if p not in config.transfer.exclude]

    return apply_overrides(
        config,
        {
            "connection": {
                "identity_file": str(identity_file) if identity_file else None,
                "connect_timeout": timeout,
            },
            "transfer": {
                "rsync_args": rsync_args,
                "exclude": excludes,
            },
            "output": {
                "verbose": True if verbose else None,
                "colored": False if no_color else None,
            },
        },
    )
