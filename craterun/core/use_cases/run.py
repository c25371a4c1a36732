"""
Run use case: resolve, install if needed, execute.

This is the top-level pipeline:

    resolve (first pass) → [sandbox → dispatch install → resolve again] → execute

Ambient state is captured once: the environment snapshot and the
install directory travel in a ``Workspace`` value, and nothing below
this module reads ``os.environ``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from craterun.adapters import BinstallBackend, CargoInstallBackend
from craterun.core.errors import InstallError
from craterun.core.models import InvocationRequest, PackageSpec, ResolvedBinary, Settings
from craterun.core.services.dispatcher import InstallerDispatcher
from craterun.core.services.executor import ChildExit, execute_binary
from craterun.core.services.paths import (
    default_deny_dirs,
    install_bin_dir,
    resolve_install_dir,
)
from craterun.core.services.resolver import resolve_binary
from craterun.core.services.sandbox import build_sandbox_env

logger = logging.getLogger(__name__)


def snapshot_environ(source: Mapping[str, str] | None = None) -> Mapping[str, str]:
    """Immutable copy of the process environment, taken once at startup."""
    return MappingProxyType(dict(os.environ if source is None else source))


@dataclass(frozen=True)
class Workspace:
    """Explicit values threaded through the pipeline."""

    environ: Mapping[str, str]
    settings: Settings
    install_dir: Path
    deny_dirs: tuple[Path, ...] = field(default_factory=tuple)

    @classmethod
    def create(cls, settings: Settings, environ: Mapping[str, str]) -> Workspace:
        return cls(
            environ=environ,
            settings=settings,
            install_dir=resolve_install_dir(settings, environ),
            deny_dirs=tuple(default_deny_dirs(environ, settings.deny_dirs)),
        )

    @property
    def bin_dir(self) -> Path:
        return install_bin_dir(self.install_dir)

    def to_dict(self) -> dict:
        return {
            "install_dir": str(self.install_dir),
            "bin_dir": str(self.bin_dir),
            "deny_dirs": [str(d) for d in self.deny_dirs],
            "env_allow": list(self.settings.env_allow),
            "cargo": self.settings.cargo,
        }


def build_dispatcher(
    settings: Settings,
    status: Callable[[str], None] | None = None,
) -> InstallerDispatcher:
    """Dispatcher wired to the real cargo backends."""
    return InstallerDispatcher(
        prebuilt=BinstallBackend(cargo=settings.cargo),
        source=CargoInstallBackend(cargo=settings.cargo),
        status=status,
    )


def locate(spec: PackageSpec, workspace: Workspace, *, force: bool = False) -> ResolvedBinary | None:
    """Resolve the spec's binary in the allowed locations.

    The install directory is created if possible, but it does not have
    to be writable here: that is only checked before an installer runs.
    """
    try:
        workspace.bin_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.debug("Could not create %s: %s", workspace.bin_dir, e)
    return resolve_binary(
        spec.binary_name,
        install_dir=workspace.install_dir,
        environ=workspace.environ,
        deny_dirs=workspace.deny_dirs,
        force=force,
    )


def run_invocation(
    request: InvocationRequest,
    workspace: Workspace,
    *,
    dispatcher: InstallerDispatcher,
    echo: Callable[[str], None] | None = None,
) -> ChildExit:
    """Run the full pipeline for one invocation.

    Args:
        request: Parsed invocation.
        workspace: Environment snapshot, settings and install dir.
        dispatcher: Installer state machine (real or mocked backends).
        echo: Sink for streamed installer output.

    Returns:
        How the binary exited.

    Raises:
        InstallError: Installation failed or left nothing resolvable.
        InstallInterrupted: Interrupted while an installer was running.
        ExecError: The binary could not be launched.
    """
    spec = request.spec
    resolved = locate(spec, workspace, force=request.force)

    if resolved is None:
        sandbox_env = build_sandbox_env(
            workspace.environ,
            workspace.install_dir,
            extra_allow=workspace.settings.env_allow,
        )
        outcome = dispatcher.install(
            request,
            env=sandbox_env,
            install_dir=workspace.install_dir,
            echo=echo,
        )
        if not outcome.ok:
            raise InstallError(
                f"failed to install {spec}: {outcome.summary()}",
                diagnostics=outcome.diagnostics,
            )

        resolved = locate(spec, workspace)
        if resolved is None:
            raise InstallError(
                f"installed {spec} but `{spec.binary_name}` was not found in {workspace.bin_dir}"
            )
    else:
        logger.info("Using existing %s (%s)", resolved.path, resolved.origin)

    return execute_binary(resolved, request.passthrough_args, environ=workspace.environ)
