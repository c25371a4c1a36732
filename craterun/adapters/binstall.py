"""
Prebuilt backend: ``cargo binstall``.

Downloads a precompiled binary for the crate. binstall's own "compile"
strategy is disabled: building from source is the dispatcher's
fallback, not binstall's.
"""

from __future__ import annotations

import shutil

from craterun.adapters.base import InstallContext, InstallerBackend
from craterun.core.models import BackendKind

BINSTALL_EXECUTABLE = "cargo-binstall"


class BinstallBackend(InstallerBackend):
    """Install prebuilt binaries with cargo-binstall."""

    @property
    def kind(self) -> BackendKind:
        return "prebuilt"

    @property
    def name(self) -> str:
        return "cargo-binstall"

    def unavailable_reason(self, env: dict[str, str]) -> str | None:
        reason = super().unavailable_reason(env)
        if reason:
            return reason
        if shutil.which(BINSTALL_EXECUTABLE, path=env.get("PATH")) is None:
            return f"{BINSTALL_EXECUTABLE} not found"
        return None

    def build_command(self, context: InstallContext) -> list[str]:
        cargo = self.find_cargo(context.env) or self.cargo
        return [
            cargo,
            "binstall",
            "--no-confirm",
            "--disable-strategies",
            "compile",
            *self._common_flags(context),
            context.request.spec.install_spec,
        ]
