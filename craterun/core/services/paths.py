"""
Platform paths: install directory, config directory, deny-list.

All functions take the environment snapshot explicitly instead of
reading ``os.environ``, so the pipeline only ever sees the environment
captured at startup.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

from craterun.core.errors import InstallError
from craterun.core.models import Settings

logger = logging.getLogger(__name__)

APP_NAME = "craterun"

# Install directory override, read once at startup
INSTALL_DIR_ENV = "CRATERUN_INSTALL_DIR"


def user_home(environ: Mapping[str, str]) -> Path:
    """Home directory from the snapshot, falling back to the OS lookup."""
    home = environ.get("HOME") or environ.get("USERPROFILE")
    if home:
        return Path(home)
    return Path.home()


def default_data_dir(environ: Mapping[str, str], platform: str = sys.platform) -> Path:
    """Per-user application data directory for craterun."""
    home = user_home(environ)
    if platform == "win32":
        base = environ.get("LOCALAPPDATA") or environ.get("APPDATA")
        return Path(base) / APP_NAME if base else home / "AppData" / "Local" / APP_NAME
    if platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    xdg_data_home = environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME
    return home / ".local" / "share" / APP_NAME


def default_config_dir(environ: Mapping[str, str], platform: str = sys.platform) -> Path:
    """Per-user configuration directory for craterun."""
    home = user_home(environ)
    if platform == "win32":
        base = environ.get("APPDATA")
        return Path(base) / APP_NAME if base else home / "AppData" / "Roaming" / APP_NAME
    if platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    xdg_config_home = environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / APP_NAME
    return home / ".config" / APP_NAME


def resolve_install_dir(settings: Settings, environ: Mapping[str, str]) -> Path:
    """Pick the sandboxed install root.

    Precedence: ``CRATERUN_INSTALL_DIR`` > config ``install_dir`` >
    platform default.
    """
    override = environ.get(INSTALL_DIR_ENV)
    if override:
        chosen = Path(override)
    elif settings.install_dir is not None:
        chosen = settings.install_dir
    else:
        chosen = default_data_dir(environ)
    return Path(os.path.abspath(chosen.expanduser()))


def install_bin_dir(install_dir: Path) -> Path:
    """Directory the backends drop binaries into (``<root>/bin``)."""
    return install_dir / "bin"


def ensure_install_dir(install_dir: Path) -> Path:
    """Create the install root and its bin dir and check they are writable.

    Raises:
        InstallError: If the directory cannot be created or written.
    """
    bin_dir = install_bin_dir(install_dir)
    try:
        bin_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise InstallError(f"cannot create install directory {install_dir}: {e}") from e

    for path in (install_dir, bin_dir):
        if not os.access(path, os.W_OK):
            raise InstallError(f"install directory is not writable: {path}")

    logger.debug("Install directory ready: %s", install_dir)
    return install_dir


def default_deny_dirs(
    environ: Mapping[str, str],
    extra: list[Path] | None = None,
) -> list[Path]:
    """Conventional package-manager bin directories never used for resolution.

    ``~/.cargo/bin``, ``~/.local/bin``, ``/usr/local/bin`` and
    ``$CARGO_HOME/bin`` when set, plus any configured extras.
    """
    home = user_home(environ)
    dirs = [
        home / ".cargo" / "bin",
        home / ".local" / "bin",
        Path("/usr/local/bin"),
    ]
    cargo_home = environ.get("CARGO_HOME")
    if cargo_home:
        dirs.append(Path(cargo_home) / "bin")
    dirs.extend(Path(d).expanduser() for d in extra or [])
    return dirs
