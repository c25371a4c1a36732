"""
Mock backend: test double for the installer dispatcher.

Never spawns anything. Returns success by default; can be set to fail
or to report itself unavailable, and can "install" a file into the
sandbox so the post-install resolution pass finds it.
"""

from __future__ import annotations

from typing import Literal

from craterun.adapters.base import InstallContext, InstallerBackend
from craterun.core.models import BackendKind, BackendResult
from craterun.core.services.paths import install_bin_dir


class MockBackend(InstallerBackend):
    """Configurable fake backend that records every attempt."""

    def __init__(
        self,
        kind: BackendKind = "prebuilt",
        status: Literal["ok", "failed", "unavailable"] = "ok",
        output: str = "[mock] installed",
        create_binary: bool = False,
        cleanup_error: str | None = None,
    ) -> None:
        super().__init__()
        self._kind = kind
        self._status = status
        self._output = output
        self._create_binary = create_binary
        self._cleanup_error = cleanup_error
        self._call_log: list[InstallContext] = []

    @property
    def kind(self) -> BackendKind:
        return self._kind

    @property
    def name(self) -> str:
        return f"mock-{self._kind}"

    @property
    def call_log(self) -> list[InstallContext]:
        """All install contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def unavailable_reason(self, env: dict[str, str]) -> str | None:
        return f"{self.name} not found" if self._status == "unavailable" else None

    def build_command(self, context: InstallContext) -> list[str]:
        return [self.name, context.request.spec.install_spec]

    def execute(self, context: InstallContext) -> BackendResult:
        self._call_log.append(context)
        reason = self.unavailable_reason(context.env)
        if reason is not None:
            return BackendResult.not_available(self.kind, reason)

        argv = self.build_command(context)
        if self._status == "failed":
            return BackendResult.failure(
                self.kind, argv=argv, returncode=1, output=self._output,
            )

        if self._create_binary:
            target = install_bin_dir(context.install_dir) / context.request.binary_name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("#!/bin/sh\nexit 0\n")
            target.chmod(0o755)

        return BackendResult.success(
            self.kind, argv=argv, returncode=0, output=self._output,
            cleanup_error=self._cleanup_error,
        )

    def reset(self) -> None:
        self._call_log.clear()
