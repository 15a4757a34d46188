"""Capability-token interface the host provides for files and directories."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncIterator, Literal, TypeAlias, Union

if TYPE_CHECKING:
    from scoped_files.models.picker_options import PickerOptions

PermissionState: TypeAlias = Literal["granted", "denied", "prompt"]
PermissionMode: TypeAlias = Literal["read", "readwrite"]


class FileSnapshot:
    """Metadata of a file at the moment it was opened for reading."""

    def __init__(self, name: str, size: int, mime_type: str, last_modified: int) -> None:
        self.name = name
        self.size = size
        self.mime_type = mime_type
        self.last_modified = last_modified

    async def read_bytes(self) -> bytes:
        raise NotImplementedError("FileSnapshot.read_bytes must be implemented by subclasses.")


class WritableStream:
    async def write(self, data: str | bytes) -> None:
        raise NotImplementedError("WritableStream.write must be implemented by subclasses.")

    async def close(self) -> None:
        raise NotImplementedError("WritableStream.close must be implemented by subclasses.")

    async def __aenter__(self) -> "WritableStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


class FileToken:
    kind: Literal["file"] = "file"

    def __init__(self, name: str) -> None:
        self.name = name

    async def read_as_file(self) -> FileSnapshot:
        raise NotImplementedError("FileToken.read_as_file must be implemented by subclasses.")

    async def open_writable_stream(self) -> WritableStream:
        raise NotImplementedError("FileToken.open_writable_stream must be implemented by subclasses.")


class DirectoryToken:
    kind: Literal["directory"] = "directory"

    def __init__(self, name: str) -> None:
        self.name = name

    async def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        raise NotImplementedError("DirectoryToken.query_permission must be implemented by subclasses.")

    async def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        raise NotImplementedError("DirectoryToken.request_permission must be implemented by subclasses.")

    async def get_child_directory(self, name: str, create: bool = False) -> "DirectoryToken":
        raise NotImplementedError("DirectoryToken.get_child_directory must be implemented by subclasses.")

    async def get_child_file(self, name: str, create: bool = False) -> FileToken:
        raise NotImplementedError("DirectoryToken.get_child_file must be implemented by subclasses.")

    def enumerate_entries(self) -> AsyncIterator[Union["DirectoryToken", FileToken]]:
        raise NotImplementedError("DirectoryToken.enumerate_entries must be implemented by subclasses.")


class HostCapabilityProvider:
    async def pick_directory(self, options: PickerOptions) -> DirectoryToken:
        raise NotImplementedError("HostCapabilityProvider.pick_directory must be implemented by subclasses.")

    async def pick_file_to_open(self, options: PickerOptions) -> FileToken:
        raise NotImplementedError("HostCapabilityProvider.pick_file_to_open must be implemented by subclasses.")

    async def pick_file_to_save(self, options: PickerOptions) -> FileToken:
        raise NotImplementedError("HostCapabilityProvider.pick_file_to_save must be implemented by subclasses.")

    def export_token(self, token: DirectoryToken) -> dict[str, Any]:
        raise NotImplementedError("HostCapabilityProvider.export_token must be implemented by subclasses.")

    def import_token(self, data: dict[str, Any]) -> DirectoryToken:
        raise NotImplementedError("HostCapabilityProvider.import_token must be implemented by subclasses.")
