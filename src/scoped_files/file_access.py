"""List, read and write files under the active grant or through a one-shot picker."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any

from scoped_files.errors import DisallowedTypeError, FileAccessError, LimitExceededError, NotFoundError
from scoped_files.grant_manager import DirectoryGrantManager
from scoped_files.host.base import HostCapabilityProvider
from scoped_files.models.file_content import FileContent
from scoped_files.models.file_entry import FileEntry
from scoped_files.models.grant_status import GrantStatus
from scoped_files.path_validation import is_root_path, join_relative, validate_path
from scoped_files.permission_store import JsonPermissionStore, MemoryPermissionStore, PermissionStore
from scoped_files.resolvers import FileResolver, GrantResolver, PickerResolver
from scoped_files.settings import AccessSettings

logger = logging.getLogger(__name__)


def file_extension(name: str) -> str:
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def encode_data_url(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


class FileAccessService:
    def __init__(
        self,
        grants: DirectoryGrantManager,
        host: HostCapabilityProvider,
        settings: AccessSettings | None = None,
    ) -> None:
        self.grants: DirectoryGrantManager = grants
        self.settings: AccessSettings = settings or AccessSettings()
        self._grant_resolver = GrantResolver(grants)
        self._picker_resolver = PickerResolver(host)
        logger.debug("File access service created with %s", self.settings)

    @classmethod
    def create(cls, host: HostCapabilityProvider, settings: AccessSettings | None = None) -> "FileAccessService":
        settings = settings or AccessSettings()
        store: PermissionStore
        if settings.store_path:
            store = JsonPermissionStore(Path(settings.store_path).expanduser(), host)
        else:
            store = MemoryPermissionStore()
        return cls(DirectoryGrantManager(host, store), host, settings)

    def _resolver(self, use_grant: bool) -> FileResolver:
        if use_grant and self.grants.has_permission():
            return self._grant_resolver
        return self._picker_resolver

    async def request_access(self) -> dict[str, Any]:
        try:
            grant = await self.grants.request_new_grant()
        except FileAccessError as exc:
            logger.error("Error requesting directory access: %s", exc)
            return {"error": True, "message": f"Failed to request directory access: {exc}"}
        return {
            "success": True,
            "directory_name": grant.display_name,
            "message": f"Access granted to directory: {grant.display_name}",
        }

    async def list_files(self, relative_dir: str = "") -> list[FileEntry]:
        validate_path(relative_dir, self.grants.has_permission())
        resolver = self._resolver(use_grant=True)
        directory = await resolver.directory(relative_dir)
        logger.debug("Listing %r (ephemeral: %s)", relative_dir, resolver.ephemeral)
        entries: list[FileEntry] = []
        async for entry in directory.enumerate_entries():
            entries.append(
                FileEntry(
                    name=entry.name,
                    kind=entry.kind,
                    relative_path=join_relative(relative_dir, entry.name),
                )
            )
        return entries

    async def read_file(self, relative_path: str) -> FileContent:
        validate_path(relative_path, self.grants.has_permission())
        resolver = self._resolver(use_grant=not is_root_path(relative_path))
        token = await resolver.file_to_read(relative_path)
        snapshot = await token.read_as_file()

        if snapshot.size > self.settings.max_file_size:
            logger.error("File too large: %s (%d bytes)", snapshot.name, snapshot.size)
            raise LimitExceededError(
                f"File size exceeds maximum allowed ({self.settings.max_file_size} bytes)."
            )
        extension = file_extension(snapshot.name)
        allowed = self.settings.allowed_extensions
        if allowed is not None and extension not in allowed:
            logger.error("File type not allowed: %r", extension)
            raise DisallowedTypeError(f"File type .{extension} is not allowed.")

        data = await snapshot.read_bytes()
        # The file may have grown since it was opened.
        if len(data) > self.settings.max_file_size:
            logger.error("File grew past the limit while reading: %s (%d bytes)", snapshot.name, len(data))
            raise LimitExceededError(
                f"File size exceeds maximum allowed ({self.settings.max_file_size} bytes)."
            )
        is_text = extension in self.settings.text_extensions
        if is_text:
            content = data.decode("utf-8", errors="replace")
        else:
            content = encode_data_url(data, snapshot.mime_type)
        logger.debug("Read %s (%d bytes)", snapshot.name, snapshot.size)
        return FileContent(
            content=content,
            name=snapshot.name,
            size=snapshot.size,
            mime_type=snapshot.mime_type,
            last_modified=snapshot.last_modified,
            is_text=is_text,
        )

    async def write_file(self, relative_path: str, content: str | bytes) -> bool:
        """Write the whole content in one go. A failure part way leaves a partial file."""
        validate_path(relative_path, self.grants.has_permission())
        resolver = self._resolver(use_grant=not is_root_path(relative_path))
        token = await resolver.file_to_write(relative_path)
        stream = await token.open_writable_stream()
        async with stream:
            await stream.write(content)
        logger.debug("Wrote %s", token.name)
        return True

    def has_directory_permission(self) -> bool:
        return self.grants.has_permission()

    def get_root_directory_name(self) -> str:
        return self.grants.root_directory_name()

    async def get_stored_directories(self) -> list[GrantStatus]:
        return await self.grants.list_grants()

    async def switch_directory(self, grant_id: str) -> dict[str, Any]:
        try:
            switched = await self.grants.switch_active(grant_id)
        except NotFoundError as exc:
            logger.warning("Cannot switch directory: %s", exc)
            return {"success": False, "message": str(exc)}
        if not switched:
            return {"success": False, "message": "Failed to switch directory. Permission denied."}
        name = self.grants.root_directory_name()
        return {"success": True, "directory_name": name, "message": f"Switched to directory: {name}"}

    async def remove_directory(self, grant_id: str) -> dict[str, Any]:
        removed = await self.grants.remove_grant(grant_id)
        message = "Directory removed successfully" if removed else "Failed to remove directory"
        return {"success": removed, "message": message}
