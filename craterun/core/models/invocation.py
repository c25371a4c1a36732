"""
Invocation models: what the user asked to run.

A ``PackageSpec`` identifies the crate (and optionally the version and
binary) and an ``InvocationRequest`` bundles it with the run flags and
the arguments destined for the binary. Both are parsed once from the
command line and never mutated afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PackageSpec(BaseModel):
    """A ``name[@version]`` package specifier plus an optional binary override."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    binary: str | None = None      # --bin override

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("package name cannot be empty")
        return value

    @field_validator("version", "binary")
    @classmethod
    def _optional_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("value cannot be empty")
        return value

    @property
    def binary_name(self) -> str:
        """Name of the executable to look for."""
        return self.binary or self.name

    @property
    def install_spec(self) -> str:
        """``name@version`` when pinned, else ``name``."""
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name

    def __str__(self) -> str:
        return self.install_spec


class InvocationRequest(BaseModel):
    """Everything one ``craterun run`` invocation needs."""

    model_config = ConfigDict(frozen=True)

    spec: PackageSpec
    force: bool = False
    quiet: bool = False
    build_from_source: bool = False
    passthrough_args: tuple[str, ...] = Field(default_factory=tuple)

    @property
    def binary_name(self) -> str:
        return self.spec.binary_name
