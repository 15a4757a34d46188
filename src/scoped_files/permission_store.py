"""Durable storage of directory grants."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import anyio
from pydantic import ValidationError

from scoped_files.errors import FileAccessError, StorageError
from scoped_files.host.base import DirectoryToken, HostCapabilityProvider, PermissionMode, PermissionState
from scoped_files.models.grant import Grant, GrantRecord

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class PermissionStore:
    async def init(self) -> None:
        raise NotImplementedError("PermissionStore.init must be implemented by subclasses.")

    async def put(self, grant: Grant) -> str:
        raise NotImplementedError("PermissionStore.put must be implemented by subclasses.")

    async def get(self, grant_id: str) -> Grant | None:
        raise NotImplementedError("PermissionStore.get must be implemented by subclasses.")

    async def get_all(self) -> list[Grant]:
        raise NotImplementedError("PermissionStore.get_all must be implemented by subclasses.")

    async def delete(self, grant_id: str) -> bool:
        raise NotImplementedError("PermissionStore.delete must be implemented by subclasses.")

    async def clear(self) -> None:
        raise NotImplementedError("PermissionStore.clear must be implemented by subclasses.")


class MemoryPermissionStore(PermissionStore):
    def __init__(self) -> None:
        self._grants: dict[str, Grant] = {}

    async def init(self) -> None:
        return None

    async def put(self, grant: Grant) -> str:
        self._grants[grant.id] = grant
        return grant.id

    async def get(self, grant_id: str) -> Grant | None:
        return self._grants.get(grant_id)

    async def get_all(self) -> list[Grant]:
        return list(self._grants.values())

    async def delete(self, grant_id: str) -> bool:
        self._grants.pop(grant_id, None)
        return True

    async def clear(self) -> None:
        self._grants.clear()


class JsonPermissionStore(PermissionStore):
    """
    Keeps grants in one JSON file, rewritten on every change.
    Tokens are persisted in whatever form the host exports them.
    """

    def __init__(self, path: Path, host: HostCapabilityProvider) -> None:
        self._path = path
        self._host = host
        self._records: dict[str, GrantRecord] = {}
        self._initialized = False
        # Serialises mutations so overlapping writers never interleave on the file.
        self._lock = anyio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def init(self) -> None:
        if self._initialized:
            return
        async with self._lock:
            if self._initialized:
                return
            await self._open()
            self._initialized = True

    async def _open(self) -> None:
        logger.debug("Opening grant store at %s", self._path)
        store_file = anyio.Path(self._path)
        try:
            if await store_file.exists():
                raw = await store_file.read_text(encoding="utf-8")
                self._records = _parse_records(raw)
            else:
                await store_file.parent.mkdir(parents=True, exist_ok=True)
                self._records = {}
                await self._flush()
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to open grant store {self._path}: {exc}") from exc

    async def put(self, grant: Grant) -> str:
        await self.init()
        try:
            token_data = self._host.export_token(grant.token)
        except FileAccessError as exc:
            raise StorageError(f"Failed to store grant {grant.id}: {exc}") from exc
        record = GrantRecord(
            id=grant.id,
            display_name=grant.display_name,
            path=grant.token.name,
            created_at=grant.created_at,
            token=token_data,
        )
        async with self._lock:
            previous = self._records.get(grant.id)
            self._records[grant.id] = record
            try:
                await self._flush()
            except StorageError:
                if previous is None:
                    self._records.pop(grant.id, None)
                else:
                    self._records[grant.id] = previous
                raise
        logger.debug("Stored grant %s", grant.id)
        return grant.id

    async def get(self, grant_id: str) -> Grant | None:
        await self.init()
        record = self._records.get(grant_id)
        if record is None:
            return None
        return self._to_grant(record)

    async def get_all(self) -> list[Grant]:
        await self.init()
        return [self._to_grant(record) for record in list(self._records.values())]

    async def delete(self, grant_id: str) -> bool:
        await self.init()
        async with self._lock:
            removed = self._records.pop(grant_id, None)
            if removed is None:
                return True
            try:
                await self._flush()
            except StorageError:
                self._records[grant_id] = removed
                raise
        return True

    async def clear(self) -> None:
        await self.init()
        async with self._lock:
            previous = self._records
            self._records = {}
            try:
                await self._flush()
            except StorageError:
                self._records = previous
                raise

    def _to_grant(self, record: GrantRecord) -> Grant:
        try:
            token: DirectoryToken = self._host.import_token(record.token)
        except FileAccessError as exc:
            logger.warning("Grant %s has an unreadable token: %s", record.id, exc)
            token = UnreadableToken(record.display_name, f"Grant {record.id} has an unreadable token: {exc}")
        return Grant(id=record.id, display_name=record.display_name, token=token, created_at=record.created_at)

    async def _flush(self) -> None:
        payload: dict[str, Any] = {
            "version": STORE_VERSION,
            "grants": {grant_id: record.model_dump(mode="json") for grant_id, record in self._records.items()},
        }
        staging = anyio.Path(self._path.with_name(f"{self._path.name}.tmp"))
        try:
            await staging.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            await staging.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Failed to write grant store {self._path}: {exc}") from exc


class UnreadableToken(DirectoryToken):
    """Stands in for a stored token the host could not restore; every check fails."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(name)
        self.reason = reason

    async def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        raise StorageError(self.reason)

    async def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        raise StorageError(self.reason)


def _parse_records(raw: str) -> dict[str, GrantRecord]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageError(f"Grant store is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("grants"), dict):
        raise StorageError("Grant store has an unexpected layout.")
    if data.get("version") != STORE_VERSION:
        raise StorageError(f"Unsupported grant store version: {data.get('version')!r}")
    records: dict[str, GrantRecord] = {}
    for grant_id, raw_record in data["grants"].items():
        try:
            records[grant_id] = GrantRecord.model_validate(raw_record)
        except ValidationError as exc:
            raise StorageError(f"Grant record {grant_id} is invalid: {exc}") from exc
    return records
