"""
Subprocess runner: the single place installer commands are spawned.

Installer output is read line by line so it can be streamed to the
terminal (or suppressed in quiet mode) while a bounded tail is kept for
error reports. There is no timeout: an install ends when the backend
exits or the user interrupts it.

Signal handling:
    - The installer runs in its own session, so a terminal Ctrl-C only
      reaches craterun. craterun forwards SIGINT/SIGTERM/SIGHUP to the
      installer and keeps reading until it exits, so a half-written
      install directory is never abandoned. Handlers go in before the
      spawn; a signal that lands in between is delivered on attach.
    - ``forward_signals`` is reused by the process executor, which
      ignores SIGINT (the child gets it from the terminal) and forwards
      the rest.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from collections import deque
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Lines of installer output kept for diagnostics
OUTPUT_TAIL_LINES = 200

FORWARDED_SIGNALS: tuple[int, ...] = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)


@dataclass
class CommandResult:
    """Outcome of one streamed command."""

    argv: list[str]
    returncode: int
    output: str = ""
    forwarded: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def interrupted_by(self) -> int | None:
        """First signal forwarded to the command, if any."""
        return self.forwarded[0] if self.forwarded else None


def _deliver(proc: subprocess.Popen, signum: int) -> None:
    if proc.poll() is not None:
        return
    try:
        if os.name == "nt":
            proc.terminate()
        else:
            proc.send_signal(signum)
    except ProcessLookupError:
        pass


class SignalRelay:
    """Signal handler that forwards to a process once it is attached.

    Signals arriving before ``attach`` (i.e. while the process is still
    being spawned) are recorded and delivered on attach.
    """

    def __init__(self) -> None:
        self.forwarded: list[int] = []
        self._proc: subprocess.Popen | None = None

    def attach(self, proc: subprocess.Popen) -> None:
        self._proc = proc
        for signum in list(self.forwarded):
            _deliver(proc, signum)

    def __call__(self, signum: int, _frame) -> None:
        self.forwarded.append(signum)
        if self._proc is None:
            logger.debug("Holding signal %d until the process starts", signum)
            return
        logger.debug("Forwarding signal %d to pid %d", signum, self._proc.pid)
        _deliver(self._proc, signum)


@contextmanager
def forward_signals(
    proc: subprocess.Popen | None = None,
    forward: Sequence[int] = FORWARDED_SIGNALS,
    ignore: Sequence[int] = (),
) -> Iterator[SignalRelay]:
    """Relay signals received by craterun to a child process while active.

    Enter before spawning and ``attach`` the process afterwards, or pass
    ``proc`` directly. Previous handlers are restored on exit. Outside
    the main thread signal handlers cannot be installed and this is a
    no-op.
    """
    relay = SignalRelay()
    if threading.current_thread() is not threading.main_thread():
        if proc is not None:
            relay.attach(proc)
        yield relay
        return

    previous: dict[int, object] = {}
    try:
        for signum in forward:
            if signum in ignore:
                continue
            previous[signum] = signal.signal(signum, relay)
        for signum in ignore:
            previous[signum] = signal.signal(signum, signal.SIG_IGN)
        if proc is not None:
            relay.attach(proc)
        yield relay
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def run_streamed(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
    echo: Callable[[str], None] | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Run an installer command, streaming its combined output.

    Args:
        argv: Command list.
        env: Complete environment for the child (the sandbox).
        echo: Called with each output line; None suppresses streaming.
        cwd: Working directory.

    Returns:
        CommandResult with the exit code and the captured output tail.

    Raises:
        OSError: If the command cannot be spawned at all.
    """
    argv_list = list(argv)
    logger.info("CMD %s", " ".join(argv_list))

    tail: deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)
    with forward_signals() as relay:
        proc = subprocess.Popen(
            argv_list,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=dict(env),
            cwd=cwd,
            text=True,
            errors="replace",
            start_new_session=(os.name != "nt"),
        )
        relay.attach(proc)

        assert proc.stdout is not None
        with proc.stdout:
            for line in proc.stdout:
                line = line.rstrip("\n")
                tail.append(line)
                if echo is not None:
                    echo(line)
        returncode = proc.wait()

    logger.debug("Command exited with %d: %s", returncode, argv_list[0])
    return CommandResult(
        argv=argv_list,
        returncode=returncode,
        output="\n".join(tail),
        forwarded=list(relay.forwarded),
    )
