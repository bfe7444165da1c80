# sshsync Test Fixtures
# Pytest fixtures for sshsync tests

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("SSHSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def local_tree(temp_dir: Path) -> Path:
    """Create a small local tree to mirror."""
    root = temp_dir / "project"
    root.mkdir()

    (root / "a.txt").write_text("a\n", encoding="utf-8")
    (root / "src").mkdir()
    (root / "src" / "main.py").write_text("print('hi')\n", encoding="utf-8")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")

    return root


@pytest.fixture
def sample_config() -> dict:
    """Create sample configuration dict."""
    return {
        "connection": {
            "identity_file": "~/.ssh/id_test",
            "connect_timeout": 7,
        },
        "transfer": {
            "rsync_args": "--chmod=D755,F644",
            "exclude": [".git/*", "*.swp"],
            "full_sync_threshold": 50,
        },
        "watch": {
            "poll_interval": 0.5,
            "max_batch_delay": 5.0,
            "restart_delay": 1.0,
        },
        "output": {"verbose": True, "colored": False},
    }


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file at the default location."""
    config_dir = temp_home / ".config" / "sshsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
