"""
Domain models: Pydantic types for craterun.

All models are re-exported here for convenient access:

    from craterun.core.models import PackageSpec, InvocationRequest, InstallOutcome
"""

from craterun.core.models.binary import BinaryOrigin, ResolvedBinary
from craterun.core.models.install import (
    BackendKind,
    BackendResult,
    InstallOutcome,
    InstallState,
)
from craterun.core.models.invocation import InvocationRequest, PackageSpec
from craterun.core.models.settings import Settings

__all__ = [
    # binary.py
    "BinaryOrigin",
    "ResolvedBinary",
    # install.py
    "BackendKind",
    "BackendResult",
    "InstallOutcome",
    "InstallState",
    # invocation.py
    "InvocationRequest",
    "PackageSpec",
    # settings.py
    "Settings",
]
