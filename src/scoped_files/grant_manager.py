"""Active directory grant tracking and relative path resolution."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from scoped_files.errors import (
    AccessDeniedError,
    FileAccessError,
    HostApiError,
    NoActiveGrantError,
    NotFoundError,
    PathErrorKind,
    PathValidationError,
)
from scoped_files.host.base import DirectoryToken, FileToken, HostCapabilityProvider
from scoped_files.models.grant import Grant
from scoped_files.models.grant_status import GrantStatus
from scoped_files.models.picker_options import PickerOptions
from scoped_files.path_validation import is_root_path, segments
from scoped_files.permission_store import PermissionStore

logger = logging.getLogger(__name__)

ROOT_PICKER_ID = "scoped-files-root-dir"


@dataclass
class SessionState:
    """
    Per-manager view of the active grant.
    ``active_token`` is only set while ``active_grant_id`` is set and the last check passed.
    """

    active_grant_id: Optional[str] = None
    cached_permission: bool = False
    active_token: Optional[DirectoryToken] = None

    def activate(self, grant_id: str, token: DirectoryToken) -> None:
        self.active_grant_id = grant_id
        self.active_token = token
        self.cached_permission = True

    def suspend(self) -> None:
        self.active_token = None
        self.cached_permission = False

    def clear(self) -> None:
        self.active_grant_id = None
        self.suspend()


class DirectoryGrantManager:
    def __init__(
        self,
        host: HostCapabilityProvider,
        store: PermissionStore,
        session: SessionState | None = None,
    ) -> None:
        self._host = host
        self._store = store
        self.session: SessionState = session or SessionState()

    @property
    def store(self) -> PermissionStore:
        return self._store

    @property
    def active_grant_id(self) -> Optional[str]:
        return self.session.active_grant_id

    def has_permission(self) -> bool:
        return self.session.active_token is not None and self.session.cached_permission

    def root_directory_name(self) -> str:
        token = self.session.active_token
        return token.name if token is not None else ""

    async def request_new_grant(self) -> Grant:
        logger.debug("Requesting a new directory grant")
        options = PickerOptions(id=ROOT_PICKER_ID, mode="readwrite")
        try:
            token = await self._host.pick_directory(options)
        except FileAccessError:
            raise
        except Exception as exc:
            raise HostApiError(f"Directory picker failed: {exc}") from exc

        if not await self.verify_permission(token, ask_if_missing=True):
            logger.info("Directory permission denied for %s", token.name)
            raise AccessDeniedError(f"Directory access was denied for {token.name}.")

        await self._store.init()
        grant = Grant(display_name=token.name, token=token)
        await self._store.put(grant)
        self.session.activate(grant.id, token)
        logger.info("Directory permission granted for %s (%s)", grant.display_name, grant.id)
        return grant

    async def verify_permission(self, target: Grant | DirectoryToken, ask_if_missing: bool = False) -> bool:
        token = target.token if isinstance(target, Grant) else target
        try:
            if await token.query_permission("readwrite") == "granted":
                return True
            if ask_if_missing:
                return await token.request_permission("readwrite") == "granted"
        except FileAccessError:
            raise
        except Exception as exc:
            raise HostApiError(f"Permission check failed for {token.name}: {exc}") from exc
        return False

    async def list_grants(self) -> list[GrantStatus]:
        await self._store.init()
        statuses: list[GrantStatus] = []
        for grant in await self._store.get_all():
            try:
                has_permission = await self.verify_permission(grant, ask_if_missing=False)
            except FileAccessError as exc:
                logger.warning("Could not verify permission for %s: %s", grant.display_name, exc)
                statuses.append(
                    GrantStatus(
                        id=grant.id,
                        display_name=grant.display_name,
                        has_permission=False,
                        created_at=grant.created_at,
                        error=str(exc),
                    )
                )
                continue
            statuses.append(
                GrantStatus(
                    id=grant.id,
                    display_name=grant.display_name,
                    has_permission=has_permission,
                    created_at=grant.created_at,
                )
            )
        return statuses

    async def switch_active(self, grant_id: str) -> bool:
        logger.debug("Switching to grant %s", grant_id)
        await self._store.init()
        grant = await self._store.get(grant_id)
        if grant is None:
            raise NotFoundError(f"Directory with ID {grant_id} not found.")
        if not await self.verify_permission(grant, ask_if_missing=True):
            logger.warning("Permission denied for directory %s", grant.display_name)
            return False
        self.session.activate(grant.id, grant.token)
        logger.info("Switched to directory %s", grant.display_name)
        return True

    async def remove_grant(self, grant_id: str) -> bool:
        await self._store.init()
        removed = await self._store.delete(grant_id)
        if self.session.active_grant_id == grant_id:
            self.session.clear()
        logger.info("Directory grant removed: %s", grant_id)
        return removed

    async def clear_grants(self) -> None:
        await self._store.init()
        await self._store.clear()
        self.session.clear()
        logger.info("All directory grants cleared")

    async def resolve_file(self, relative_path: str, create_if_missing: bool = False) -> FileToken:
        current = await self._require_active_token()
        parts = segments(relative_path)
        if not parts:
            raise PathValidationError(PathErrorKind.EMPTY, "Invalid file path: path cannot be empty.")
        logger.debug("Resolving file %r (create: %s)", relative_path, create_if_missing)
        *directories, file_name = parts
        try:
            for name in directories:
                current = await current.get_child_directory(name, create=create_if_missing)
            return await current.get_child_file(file_name, create=create_if_missing)
        except NotFoundError as exc:
            raise NotFoundError(f"{relative_path}: {exc}") from exc

    async def resolve_directory(self, relative_path: str) -> DirectoryToken:
        current = await self._require_active_token()
        if not relative_path or is_root_path(relative_path):
            return current
        logger.debug("Resolving directory %r", relative_path)
        try:
            for name in segments(relative_path):
                current = await current.get_child_directory(name, create=False)
        except NotFoundError as exc:
            raise NotFoundError(f"{relative_path}: {exc}") from exc
        return current

    async def _require_active_token(self) -> DirectoryToken:
        token = self.session.active_token
        if self.session.active_grant_id is None or token is None:
            raise NoActiveGrantError("No directory permission granted. Request directory access first.")
        # Hosts may revoke access between calls, so every resolution checks again.
        if not await self.verify_permission(token, ask_if_missing=False):
            self.session.suspend()
            raise AccessDeniedError(f"Permission for {token.name} is no longer granted.")
        return token
