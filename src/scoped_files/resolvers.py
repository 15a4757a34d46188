"""Ways of turning a relative path into a host token for one operation."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

from scoped_files.errors import FileAccessError, HostApiError
from scoped_files.grant_manager import DirectoryGrantManager
from scoped_files.host.base import DirectoryToken, FileToken, HostCapabilityProvider
from scoped_files.models.picker_options import PickerOptions
from scoped_files.path_validation import segments

TokenT = TypeVar("TokenT", DirectoryToken, FileToken)


class FileResolver:
    ephemeral: bool = False

    async def directory(self, relative_dir: str) -> DirectoryToken:
        raise NotImplementedError("FileResolver.directory must be implemented by subclasses.")

    async def file_to_read(self, relative_path: str) -> FileToken:
        raise NotImplementedError("FileResolver.file_to_read must be implemented by subclasses.")

    async def file_to_write(self, relative_path: str) -> FileToken:
        raise NotImplementedError("FileResolver.file_to_write must be implemented by subclasses.")


class GrantResolver(FileResolver):
    """Resolves paths under the active persisted grant."""

    def __init__(self, grants: DirectoryGrantManager) -> None:
        self._grants = grants

    async def directory(self, relative_dir: str) -> DirectoryToken:
        return await self._grants.resolve_directory(relative_dir)

    async def file_to_read(self, relative_path: str) -> FileToken:
        return await self._grants.resolve_file(relative_path, create_if_missing=False)

    async def file_to_write(self, relative_path: str) -> FileToken:
        return await self._grants.resolve_file(relative_path, create_if_missing=True)


class PickerResolver(FileResolver):
    """Asks the user through a one-shot picker. Nothing it returns is persisted."""

    ephemeral = True

    def __init__(self, host: HostCapabilityProvider) -> None:
        self._host = host

    async def _pick(self, pick: Callable[[PickerOptions], Awaitable[TokenT]], options: PickerOptions) -> TokenT:
        try:
            return await pick(options)
        except FileAccessError:
            raise
        except Exception as exc:
            raise HostApiError(f"Picker {options.id} failed: {exc}") from exc

    async def directory(self, relative_dir: str) -> DirectoryToken:
        return await self._pick(self._host.pick_directory, PickerOptions(id="scoped-files-dir"))

    async def file_to_read(self, relative_path: str) -> FileToken:
        return await self._pick(self._host.pick_file_to_open, PickerOptions(id="scoped-files-read"))

    async def file_to_write(self, relative_path: str) -> FileToken:
        parts = segments(relative_path)
        options = PickerOptions(
            id="scoped-files-write",
            mode="readwrite",
            suggested_name=parts[-1] if parts else None,
        )
        return await self._pick(self._host.pick_file_to_save, options)
