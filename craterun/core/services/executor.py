"""
Process executor: run the resolved binary and report how it ended.

The binary gets craterun's stdin/stdout/stderr and the ORIGINAL
environment snapshot; the installer sandbox never leaks into it.
craterun waits for the child (spawn-and-wait on every platform).

While the child runs, SIGINT is ignored by craterun: the terminal
already delivers it to the child, which decides what to do with it.
SIGTERM and SIGHUP sent to craterun are forwarded.
"""

from __future__ import annotations

import logging
import signal
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from craterun.core.errors import EXIT_SIGNALED, ExecError
from craterun.core.models import ResolvedBinary
from craterun.core.services.resolver import is_executable_file
from craterun.core.services.subprocess_runner import forward_signals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChildExit:
    """How the child process ended."""

    returncode: int

    @property
    def signal(self) -> int | None:
        """Signal number when the child was killed by one (POSIX)."""
        return -self.returncode if self.returncode < 0 else None

    @property
    def signal_name(self) -> str | None:
        if self.signal is None:
            return None
        try:
            return signal.Signals(self.signal).name
        except ValueError:
            return f"signal {self.signal}"

    @property
    def exit_code(self) -> int:
        """Code craterun exits with: the child's own, or EXIT_SIGNALED."""
        return EXIT_SIGNALED if self.signal is not None else self.returncode


def execute_binary(
    binary: ResolvedBinary,
    args: Sequence[str],
    *,
    environ: Mapping[str, str],
) -> ChildExit:
    """Launch ``binary`` with ``args`` and wait for it.

    Raises:
        ExecError: If the file is no longer executable or cannot be launched.
    """
    path = binary.path
    if not is_executable_file(path):
        raise ExecError(f"{path} is not an executable file")

    argv = [str(path), *args]
    logger.debug("Executing %s (origin=%s)", argv, binary.origin)
    with forward_signals(ignore=(signal.SIGINT,)) as relay:
        try:
            proc = subprocess.Popen(argv, env=dict(environ))
        except OSError as e:
            raise ExecError(f"failed to execute {path}: {e.strerror or e}") from e
        relay.attach(proc)
        returncode = proc.wait()

    child = ChildExit(returncode=returncode)
    if child.signal is not None:
        logger.debug("%s terminated by %s", path, child.signal_name)
    else:
        logger.debug("%s exited with %d", path, returncode)
    return child
