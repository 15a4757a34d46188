"""Pydantic model for host picker options."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class PickerOptions(BaseModel):
    id: str
    mode: Literal["read", "readwrite"] = "read"
    start_in: str = "documents"
    suggested_name: Optional[str] = None
