"""Pydantic model for a directory listing entry."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class FileEntry(BaseModel):
    name: str
    kind: Literal["file", "directory"]
    relative_path: str
