"""
Shared test fixtures and configuration.
"""

import logging
import os
from pathlib import Path

import pytest


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A throwaway home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    """Sandboxed install root (not created)."""
    return tmp_path / "install"


@pytest.fixture
def path_dir(tmp_path: Path) -> Path:
    """An allowed directory to put on PATH."""
    directory = tmp_path / "pathbin"
    directory.mkdir()
    return directory


@pytest.fixture
def environ(home: Path, path_dir: Path) -> dict[str, str]:
    """Minimal environment snapshot with an isolated HOME and PATH."""
    return {
        "HOME": str(home),
        "PATH": os.pathsep.join([str(path_dir), "/usr/bin", "/bin"]),
    }


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
