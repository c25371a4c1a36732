"""
Settings: user configuration for craterun.

Loaded from an optional YAML file by ``craterun.core.config.loader``.
Every field has a usable default, so running without a config file is
the normal case.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """Validated contents of ``config.yml``."""

    model_config = ConfigDict(extra="forbid")

    install_dir: Path | None = None          # None → platform default
    deny_dirs: list[Path] = Field(default_factory=list)
    env_allow: list[str] = Field(default_factory=list)
    cargo: str = "cargo"
