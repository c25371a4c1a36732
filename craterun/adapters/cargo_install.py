"""
Source backend: ``cargo install``.

Compiles the crate locally. Each build gets a private temporary target
directory which is removed afterwards on a best-effort basis: a failed
removal is reported on the result but never changes its status.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from craterun.adapters.base import InstallContext, InstallerBackend
from craterun.core.models import BackendKind, BackendResult

logger = logging.getLogger(__name__)


class CargoInstallBackend(InstallerBackend):
    """Build and install from source with cargo install."""

    @property
    def kind(self) -> BackendKind:
        return "source"

    @property
    def name(self) -> str:
        return "cargo install"

    def build_command(self, context: InstallContext) -> list[str]:
        spec = context.request.spec
        cargo = self.find_cargo(context.env) or self.cargo
        argv = [cargo, "install", *self._common_flags(context)]
        if context.build_dir is not None:
            argv += ["--target-dir", str(context.build_dir)]
        argv.append(spec.name)
        if spec.version:
            argv += ["--version", spec.version]
        if spec.binary:
            argv += ["--bin", spec.binary]
        return argv

    def execute(self, context: InstallContext) -> BackendResult:
        reason = self.unavailable_reason(context.env)
        if reason is not None:
            logger.info("%s unavailable: %s", self.name, reason)
            return BackendResult.not_available(self.kind, reason)

        try:
            build_dir = Path(tempfile.mkdtemp(prefix="craterun-build-"))
        except OSError as e:
            logger.debug("Could not create a build directory", exc_info=True)
            return BackendResult.failure(
                self.kind, error=f"could not create a build directory: {e}",
            )

        try:
            context = context.model_copy(update={"build_dir": build_dir})
            result = self._run(context, self.build_command(context))
        finally:
            cleanup_error = remove_build_dir(build_dir)

        if cleanup_error:
            result.cleanup_error = cleanup_error
        return result


def remove_build_dir(path: Path) -> str | None:
    """Delete a temporary build directory; return the error text on failure."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Could not remove build directory %s: %s", path, e)
        return f"could not remove build directory {path}: {e}"
    logger.debug("Removed build directory %s", path)
    return None
