"""
Installer backend base: the contract between the dispatcher and cargo.

The dispatcher only talks to backends through this interface, never
directly to ``cargo``. Backends NEVER raise for installer failures: a
missing tool, a spawn error and a nonzero exit all come back as a
``BackendResult``.
"""

from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from craterun.core.models import BackendKind, BackendResult, InvocationRequest
from craterun.core.services.subprocess_runner import run_streamed

logger = logging.getLogger(__name__)


class InstallContext(BaseModel):
    """Everything a backend needs for one attempt."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    request: InvocationRequest
    env: dict[str, str]                      # sandbox environment
    install_dir: Path
    echo: Callable[[str], None] | None = None
    build_dir: Path | None = None            # source builds only

    @property
    def stream(self) -> Callable[[str], None] | None:
        """Line sink for backend output; None in quiet mode."""
        return None if self.request.quiet else self.echo


class InstallerBackend(ABC):
    """Abstract base class for installer backends.

    To create a new backend:
        1. Subclass InstallerBackend
        2. Implement kind, name, build_command
        3. Override is_available if it needs more than cargo
    """

    def __init__(self, cargo: str = "cargo") -> None:
        self.cargo = cargo

    @property
    @abstractmethod
    def kind(self) -> BackendKind:
        """Which dispatcher slot this backend fills."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable tool name used in status lines."""

    @abstractmethod
    def build_command(self, context: InstallContext) -> list[str]:
        """The command line for this attempt."""

    def find_cargo(self, env: dict[str, str]) -> str | None:
        """Absolute path of cargo as seen through the sandbox ``PATH``."""
        if os.path.dirname(self.cargo):
            return self.cargo if os.path.isfile(self.cargo) else None
        return shutil.which(self.cargo, path=env.get("PATH"))

    def unavailable_reason(self, env: dict[str, str]) -> str | None:
        """Why this backend cannot run, or None when it can."""
        if self.find_cargo(env) is None:
            return f"{self.cargo} not found"
        return None

    def is_available(self, env: dict[str, str]) -> bool:
        return self.unavailable_reason(env) is None

    def execute(self, context: InstallContext) -> BackendResult:
        """Run the backend and return its result. MUST never raise for
        installer failures."""
        reason = self.unavailable_reason(context.env)
        if reason is not None:
            logger.info("%s unavailable: %s", self.name, reason)
            return BackendResult.not_available(self.kind, reason)
        return self._run(context, self.build_command(context))

    def _run(self, context: InstallContext, argv: list[str]) -> BackendResult:
        try:
            result = run_streamed(argv, env=context.env, echo=context.stream)
        except OSError as e:
            logger.debug("Spawn of %s failed", argv[0], exc_info=True)
            return BackendResult.failure(
                self.kind, error=f"failed to launch {self.name}: {e}", argv=argv,
            )

        common = {
            "argv": argv,
            "returncode": result.returncode,
            "output": result.output,
            "interrupted_by": result.interrupted_by,
        }
        if result.ok:
            return BackendResult.success(self.kind, **common)
        return BackendResult.failure(self.kind, **common)

    def _common_flags(self, context: InstallContext) -> list[str]:
        flags = []
        if context.request.quiet:
            flags.append("--quiet")
        if context.request.force:
            flags.append("--force")
        return flags

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
