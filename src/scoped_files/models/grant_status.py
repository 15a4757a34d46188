"""Pydantic model for a listed grant."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GrantStatus(BaseModel):
    id: str
    display_name: str
    has_permission: bool
    created_at: datetime
    error: Optional[str] = None  # set when the permission check itself failed
