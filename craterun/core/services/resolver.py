"""
Binary resolver: find an already-installed executable.

Only two kinds of location are ever consulted:

    1. the sandboxed install root (``<root>/bin``, then ``<root>``)
    2. ``PATH`` entries from the startup snapshot, minus the deny-list

A match inside a deny-listed directory (``~/.cargo/bin`` and friends)
does not count, even when it is the only one. Returning ``None`` means
"not found" and is what triggers an install.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path

from craterun.core.models import ResolvedBinary
from craterun.core.services.paths import install_bin_dir

logger = logging.getLogger(__name__)


def _normalize(path: Path) -> str:
    return os.path.normcase(os.path.realpath(path))


def candidate_names(name: str, environ: Mapping[str, str], platform: str = sys.platform) -> list[str]:
    """File names to look for; on Windows each ``PATHEXT`` suffix too."""
    if platform != "win32":
        return [name]
    pathext = environ.get("PATHEXT") or ".COM;.EXE;.BAT;.CMD"
    suffixes = [ext.lower() for ext in pathext.split(";") if ext]
    if os.path.splitext(name)[1].lower() in suffixes:
        return [name]
    return [name] + [name + ext for ext in suffixes]


def is_executable_file(path: Path) -> bool:
    """Regular file with the execute permission for this user."""
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def search_dirs(environ: Mapping[str, str], deny_dirs: Iterable[Path]) -> list[Path]:
    """``PATH`` entries from the snapshot with deny-listed dirs removed.

    Empty entries (which POSIX shells read as the current directory)
    are skipped.
    """
    denied = {_normalize(d) for d in deny_dirs}
    allowed: list[Path] = []
    seen: set[str] = set()
    for entry in environ.get("PATH", "").split(os.pathsep):
        if not entry:
            continue
        key = _normalize(Path(entry))
        if key in denied:
            logger.debug("Skipping deny-listed PATH entry: %s", entry)
            continue
        if key in seen:
            continue
        seen.add(key)
        allowed.append(Path(entry))
    return allowed


def _find_in(directories: Sequence[Path], names: Sequence[str]) -> Path | None:
    for directory in directories:
        for candidate_name in names:
            candidate = directory / candidate_name
            if candidate.parent != directory:
                # only bare names directly inside the searched dir count
                logger.debug("Ignoring %r: not a plain name inside %s", candidate_name, directory)
                continue
            if is_executable_file(candidate):
                return candidate
    return None


def resolve_binary(
    name: str,
    *,
    install_dir: Path,
    environ: Mapping[str, str],
    deny_dirs: Iterable[Path],
    force: bool = False,
) -> ResolvedBinary | None:
    """Locate ``name`` in the allowed locations.

    Args:
        name: Executable name (``--bin`` override or package name).
        install_dir: Sandboxed install root.
        environ: Environment snapshot (only ``PATH``/``PATHEXT`` are read).
        deny_dirs: Directories whose matches never count.
        force: Short-circuit to not-found so the package is reinstalled.

    Returns:
        The resolved binary, or None when nothing allowed matches.
    """
    if force:
        logger.debug("Resolution of %s skipped (--force)", name)
        return None

    names = candidate_names(name, environ)
    deny_dirs = list(deny_dirs)

    hit = _find_in([install_bin_dir(install_dir), install_dir], names)
    if hit is not None:
        logger.debug("Resolved %s in install dir: %s", name, hit)
        return ResolvedBinary(path=Path(os.path.abspath(hit)), origin="install-dir")

    hit = _find_in(search_dirs(environ, deny_dirs), names)
    if hit is not None:
        logger.debug("Resolved %s on PATH: %s", name, hit)
        return ResolvedBinary(path=Path(os.path.abspath(hit)), origin="path")

    logger.debug("%s not found in allowed locations", name)
    return None
