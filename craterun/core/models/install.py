"""
Install models: backend results and the dispatcher's outcome.

Backends return a ``BackendResult`` and never raise: a missing tool,
a spawn error and a nonzero exit are all captured here, the same way
an adapter captures failures in a receipt. The dispatcher folds the
results of every attempted backend into one ``InstallOutcome``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

BackendKind = Literal["prebuilt", "source"]


class InstallState(StrEnum):
    """Installer dispatcher states.

    NOT_ATTEMPTED is the initial state; SUCCEEDED and FAILED are terminal.
    """

    NOT_ATTEMPTED = "not_attempted"
    TRY_PREBUILT = "try_prebuilt"
    FALLBACK_SOURCE = "fallback_source"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (InstallState.SUCCEEDED, InstallState.FAILED)


class BackendResult(BaseModel):
    """Result of one installer backend attempt."""

    backend: BackendKind
    status: Literal["ok", "failed", "unavailable"] = "ok"
    argv: list[str] = Field(default_factory=list)
    returncode: int | None = None
    output: str = ""                # captured tail of stdout+stderr
    error: str | None = None
    cleanup_error: str | None = None
    interrupted_by: int | None = None   # signal forwarded to the backend

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def unavailable(self) -> bool:
        return self.status == "unavailable"

    def summary(self) -> str:
        """One-line description of the attempt, for error messages."""
        label = self.argv[0] if self.argv else self.backend
        if self.ok:
            return f"{self.backend}: ok"
        if self.unavailable:
            return f"{self.backend}: {self.error or 'unavailable'}"
        if self.error:
            return f"{self.backend}: {self.error}"
        return f"{self.backend}: {label} exited with status {self.returncode}"

    @classmethod
    def success(cls, backend: BackendKind, **kwargs) -> BackendResult:
        return cls(backend=backend, status="ok", **kwargs)

    @classmethod
    def failure(cls, backend: BackendKind, error: str | None = None, **kwargs) -> BackendResult:
        return cls(backend=backend, status="failed", error=error, **kwargs)

    @classmethod
    def not_available(cls, backend: BackendKind, reason: str) -> BackendResult:
        return cls(backend=backend, status="unavailable", error=reason)


class InstallOutcome(BaseModel):
    """Terminal result of the installer dispatcher."""

    state: InstallState
    used_backend: BackendKind | None = None
    attempts: list[BackendResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state == InstallState.SUCCEEDED

    @property
    def diagnostics(self) -> str:
        """Combined output of every attempted backend."""
        blocks = []
        for attempt in self.attempts:
            header = f"── {attempt.summary()}"
            body = attempt.output.rstrip()
            blocks.append(f"{header}\n{body}" if body else header)
        return "\n".join(blocks)

    def summary(self) -> str:
        return "; ".join(a.summary() for a in self.attempts) or "no backend attempted"
