"""Adapters: installer backend bindings.

Public re-exports for convenient access.
"""

from craterun.adapters.base import InstallContext, InstallerBackend
from craterun.adapters.binstall import BinstallBackend
from craterun.adapters.cargo_install import CargoInstallBackend
from craterun.adapters.mock import MockBackend

__all__ = [
    "BinstallBackend",
    "CargoInstallBackend",
    "InstallContext",
    "InstallerBackend",
    "MockBackend",
]
