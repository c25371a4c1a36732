"""
Environment sandbox: the environment handed to installer subprocesses.

Both backends honor ``CARGO_INSTALL_ROOT``. Everything else that could
point them at the user's own Cargo installation is stripped: the exact
home/root/install-path names plus the whole ``CARGO_`` / ``BINSTALL_``
namespace, except the network and registry settings a download or
build legitimately needs.

The result is a fresh dict for one installer run. ``os.environ`` is
never touched, and the binary itself later runs with the original
snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from craterun.core.services.paths import ensure_install_dir

logger = logging.getLogger(__name__)

INSTALL_ROOT_VAR = "CARGO_INSTALL_ROOT"

STRIPPED_VARS = frozenset({
    "CARGO_HOME",
    "CARGO_INSTALL_ROOT",
    "CARGO_TARGET_DIR",
    "CARGO_BUILD_TARGET_DIR",
    "BINSTALL_INSTALL_PATH",
    "RUSTUP_HOME",
    "RUSTUP_TOOLCHAIN",
})

STRIPPED_PREFIXES = ("CARGO_", "BINSTALL_")

ALLOWED_PREFIXES = ("CARGO_HTTP_", "CARGO_NET_")
ALLOWED_VARS = frozenset({
    "CARGO_REGISTRIES_CRATES_IO_PROTOCOL",
    "CARGO_TERM_COLOR",
})


def is_stripped(name: str, extra_allow: Iterable[str] = ()) -> bool:
    """Whether ``name`` must not reach an installer subprocess."""
    key = name.upper()
    if key in STRIPPED_VARS:
        return True
    if not key.startswith(STRIPPED_PREFIXES):
        return False
    if key in ALLOWED_VARS or key.startswith(ALLOWED_PREFIXES):
        return False
    return key not in {a.upper() for a in extra_allow}


def build_sandbox_env(
    environ: Mapping[str, str],
    install_dir: Path,
    *,
    extra_allow: Iterable[str] = (),
) -> dict[str, str]:
    """Derive the installer environment from the startup snapshot.

    Args:
        environ: Immutable snapshot of the parent environment.
        install_dir: Sandboxed install root; created if missing.
        extra_allow: Additional ``CARGO_*`` names to keep (from config).

    Returns:
        A new mapping with ``CARGO_INSTALL_ROOT`` pointing at ``install_dir``.

    Raises:
        InstallError: If the install directory cannot be prepared.
    """
    ensure_install_dir(install_dir)

    extra_allow = tuple(extra_allow)
    env: dict[str, str] = {}
    removed: list[str] = []
    for name, value in environ.items():
        if is_stripped(name, extra_allow):
            removed.append(name)
            continue
        env[name] = value

    env[INSTALL_ROOT_VAR] = str(install_dir)

    if removed:
        logger.debug("Sandbox stripped: %s", ", ".join(sorted(removed)))
    logger.debug("Sandbox %s=%s", INSTALL_ROOT_VAR, install_dir)
    return env
