"""Persisted directory grant records."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from scoped_files.host.base import DirectoryToken


def new_grant_id() -> str:
    return f"dir_{uuid.uuid4().hex}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Grant(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=new_grant_id)
    display_name: str
    token: DirectoryToken
    created_at: datetime = Field(default_factory=utc_now)


class GrantRecord(BaseModel):
    """On-disk form of a grant; the token is whatever the host exported."""

    id: str
    display_name: str
    path: str = ""
    created_at: datetime
    token: dict[str, Any]
