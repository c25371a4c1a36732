"""
Installer dispatcher: prebuilt first, source as the fallback.

States:
    NOT_ATTEMPTED    → Initial.
    TRY_PREBUILT     → cargo-binstall attempt.
    FALLBACK_SOURCE  → cargo install attempt.
    SUCCEEDED        → Terminal.
    FAILED           → Terminal.

Transitions:
    NOT_ATTEMPTED → TRY_PREBUILT:     default
    NOT_ATTEMPTED → FALLBACK_SOURCE:  --build-from-source
    TRY_PREBUILT → SUCCEEDED:         prebuilt install succeeds
    TRY_PREBUILT → FALLBACK_SOURCE:   prebuilt fails or is unavailable
    FALLBACK_SOURCE → SUCCEEDED:      source install succeeds
    FALLBACK_SOURCE → FAILED:         source install fails or is unavailable

The fallback from prebuilt to source is unconditional. The flag only
skips the prebuilt step.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from pathlib import Path

from craterun.adapters.base import InstallContext, InstallerBackend
from craterun.core.errors import InstallInterrupted
from craterun.core.models import BackendResult, InstallOutcome, InstallState, InvocationRequest

logger = logging.getLogger(__name__)


def next_state(
    state: InstallState,
    *,
    build_from_source: bool = False,
    succeeded: bool = False,
) -> InstallState:
    """Pure transition function of the dispatcher.

    Args:
        state: Current, non-terminal state.
        build_from_source: Only consulted from NOT_ATTEMPTED.
        succeeded: Outcome of the attempt made in ``state``.

    Raises:
        ValueError: If ``state`` is terminal.
    """
    if state == InstallState.NOT_ATTEMPTED:
        return InstallState.FALLBACK_SOURCE if build_from_source else InstallState.TRY_PREBUILT
    if state == InstallState.TRY_PREBUILT:
        return InstallState.SUCCEEDED if succeeded else InstallState.FALLBACK_SOURCE
    if state == InstallState.FALLBACK_SOURCE:
        return InstallState.SUCCEEDED if succeeded else InstallState.FAILED
    raise ValueError(f"no transition out of terminal state {state.value!r}")


class InstallerDispatcher:
    """Drive the install state machine over two backends.

    Args:
        prebuilt: Backend for TRY_PREBUILT.
        source: Backend for FALLBACK_SOURCE.
        status: Sink for the one-line status messages (one per
            transition). Defaults to the logger.
    """

    def __init__(
        self,
        prebuilt: InstallerBackend,
        source: InstallerBackend,
        status: Callable[[str], None] | None = None,
    ) -> None:
        self._backends = {
            InstallState.TRY_PREBUILT: prebuilt,
            InstallState.FALLBACK_SOURCE: source,
        }
        self._status = status or logger.info

    def install(
        self,
        request: InvocationRequest,
        *,
        env: Mapping[str, str],
        install_dir: Path,
        echo: Callable[[str], None] | None = None,
    ) -> InstallOutcome:
        """Run the state machine to a terminal state.

        Args:
            request: The invocation (spec, flags).
            env: Sandbox environment for every backend.
            install_dir: Sandboxed install root.
            echo: Sink for streamed backend output (ignored when quiet).

        Returns:
            InstallOutcome carrying every attempt's result.

        Raises:
            InstallInterrupted: A signal was forwarded to a backend.
        """
        spec = request.spec
        attempts: list[BackendResult] = []
        used_backend = None

        state = next_state(InstallState.NOT_ATTEMPTED, build_from_source=request.build_from_source)
        self._announce(state, request, install_dir)

        while not state.terminal:
            backend = self._backends[state]
            context = InstallContext(
                request=request,
                env=dict(env),
                install_dir=install_dir,
                echo=echo,
            )
            result = backend.execute(context)
            attempts.append(result)
            logger.debug("%s → %s", state.value, result.summary())

            if result.interrupted_by is not None:
                raise InstallInterrupted(result.interrupted_by)
            if result.cleanup_error:
                self._status(f"warning: {result.cleanup_error}")

            new_state = next_state(state, succeeded=result.ok)
            if new_state == InstallState.SUCCEEDED:
                used_backend = backend.kind
                self._status(f"Installed {spec} with {backend.name}")
            elif new_state == InstallState.FAILED:
                self._status(f"Failed to install {spec}")
            else:
                self._announce(new_state, request, install_dir, reason=_reason(result, backend))
            state = new_state

        return InstallOutcome(state=state, used_backend=used_backend, attempts=attempts)

    def _announce(
        self,
        state: InstallState,
        request: InvocationRequest,
        install_dir: Path,
        reason: str | None = None,
    ) -> None:
        backend = self._backends[state]
        verb = "Building" if state == InstallState.FALLBACK_SOURCE else "Installing"
        line = f"{verb} {request.spec} with {backend.name} into {install_dir}"
        if reason:
            line = f"{reason}; falling back: {line[0].lower()}{line[1:]}"
        self._status(line)


def _reason(result: BackendResult, backend: InstallerBackend) -> str:
    if result.unavailable:
        return result.error or f"{backend.name} unavailable"
    if result.error:
        return result.error
    return f"{backend.name} exited with status {result.returncode}"
