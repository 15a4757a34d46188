"""Pydantic model for the result of reading a file."""

from __future__ import annotations

from pydantic import BaseModel


class FileContent(BaseModel):
    content: str  # UTF-8 text, or a base64 data URL for binary files
    name: str
    size: int
    mime_type: str
    last_modified: int  # milliseconds since the epoch
    is_text: bool
