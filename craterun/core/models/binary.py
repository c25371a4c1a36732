"""Resolved binary model: an executable the pipeline is allowed to run."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

BinaryOrigin = Literal["path", "install-dir"]


class ResolvedBinary(BaseModel):
    """An absolute path to a verified executable and where it was found."""

    model_config = ConfigDict(frozen=True)

    path: Path
    origin: BinaryOrigin

    def to_dict(self) -> dict:
        return {"path": str(self.path), "origin": self.origin}
