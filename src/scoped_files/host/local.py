"""Capability provider backed by the local filesystem."""

from __future__ import annotations

import inspect
import logging
import mimetypes
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, Iterator, Optional, Union

import anyio
from anyio import AsyncFile

from scoped_files.errors import (
    AccessDeniedError,
    FileAccessError,
    HostApiError,
    NotFoundError,
    PickerCancelledError,
)
from scoped_files.host.base import (
    DirectoryToken,
    FileSnapshot,
    FileToken,
    HostCapabilityProvider,
    PermissionMode,
    PermissionState,
    WritableStream,
)

if TYPE_CHECKING:
    from scoped_files.models.picker_options import PickerOptions

logger = logging.getLogger(__name__)

PermissionPrompt = Callable[[Path, PermissionMode], Union[bool, Awaitable[bool]]]


def allow_all(path: Path, mode: PermissionMode) -> bool:
    return True


@contextmanager
def _translate_os_errors(path: Path) -> Iterator[None]:
    try:
        yield
    except FileAccessError:
        raise
    except FileNotFoundError as exc:
        raise NotFoundError(f"{path.name or path} was not found.") from exc
    except (NotADirectoryError, IsADirectoryError) as exc:
        raise NotFoundError(f"{path.name or path} is not the expected kind of entry.") from exc
    except PermissionError as exc:
        raise HostApiError(f"Operating system refused access to {path}: {exc}") from exc
    except OSError as exc:
        raise HostApiError(f"Filesystem error for {path}: {exc}") from exc


class Picker:
    """Answers picker dialogs. ``None`` means the user cancelled."""

    async def choose_directory(self, options: PickerOptions) -> Optional[Path]:
        raise NotImplementedError("Picker.choose_directory must be implemented by subclasses.")

    async def choose_file_to_open(self, options: PickerOptions) -> Optional[Path]:
        raise NotImplementedError("Picker.choose_file_to_open must be implemented by subclasses.")

    async def choose_file_to_save(self, options: PickerOptions) -> Optional[Path]:
        raise NotImplementedError("Picker.choose_file_to_save must be implemented by subclasses.")


class PresetPicker(Picker):
    def __init__(
        self,
        directory: Optional[Path] = None,
        open_file: Optional[Path] = None,
        save_file: Optional[Path] = None,
    ) -> None:
        self.directory = directory
        self.open_file = open_file
        self.save_file = save_file
        self.calls: list[PickerOptions] = []

    async def choose_directory(self, options: PickerOptions) -> Optional[Path]:
        self.calls.append(options)
        return self.directory

    async def choose_file_to_open(self, options: PickerOptions) -> Optional[Path]:
        self.calls.append(options)
        return self.open_file

    async def choose_file_to_save(self, options: PickerOptions) -> Optional[Path]:
        self.calls.append(options)
        if self.save_file is not None and self.save_file.is_dir() and options.suggested_name:
            return self.save_file / options.suggested_name
        return self.save_file


class LocalFileSnapshot(FileSnapshot):
    def __init__(self, path: Path, size: int, last_modified: int) -> None:
        mime_type, _ = mimetypes.guess_type(path.name)
        super().__init__(path.name, size, mime_type or "", last_modified)
        self._path = path

    async def read_bytes(self) -> bytes:
        with _translate_os_errors(self._path):
            return await anyio.Path(self._path).read_bytes()


class LocalWritableStream(WritableStream):
    def __init__(self, path: Path, handle: AsyncFile[bytes]) -> None:
        self._path = path
        self._handle = handle
        self._closed = False

    async def write(self, data: str | bytes) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        with _translate_os_errors(self._path):
            await self._handle.write(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with _translate_os_errors(self._path):
            await self._handle.aclose()


class LocalFileToken(FileToken):
    def __init__(self, host: "LocalHost", path: Path) -> None:
        super().__init__(path.name)
        self.path = path
        self._host = host

    async def read_as_file(self) -> FileSnapshot:
        self._host.ensure_allowed(self.path, "read")
        with _translate_os_errors(self.path):
            stat = await anyio.Path(self.path).stat()
        return LocalFileSnapshot(self.path, stat.st_size, stat.st_mtime_ns // 1_000_000)

    async def open_writable_stream(self) -> WritableStream:
        self._host.ensure_allowed(self.path, "readwrite")
        with _translate_os_errors(self.path):
            handle = await anyio.open_file(self.path, "wb")
        return LocalWritableStream(self.path, handle)


class LocalDirectoryToken(DirectoryToken):
    def __init__(self, host: "LocalHost", path: Path) -> None:
        super().__init__(path.name)
        self.path = path
        self._host = host

    async def query_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        return self._host.permission_state(self.path, mode)

    async def request_permission(self, mode: PermissionMode = "readwrite") -> PermissionState:
        return await self._host.request_permission(self.path, mode)

    def _child_path(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise HostApiError(f"Invalid entry name: {name!r}")
        return self.path / name

    async def get_child_directory(self, name: str, create: bool = False) -> DirectoryToken:
        child = self._child_path(name)
        async_child = anyio.Path(child)
        with _translate_os_errors(child):
            if await async_child.is_dir():
                self._host.ensure_allowed(child, "read")
                return LocalDirectoryToken(self._host, child)
            if await async_child.exists():
                raise NotFoundError(f"{name} is not a directory.")
            if not create:
                raise NotFoundError(f"Directory {name} was not found.")
            self._host.ensure_allowed(child, "readwrite")
            await async_child.mkdir()
        return LocalDirectoryToken(self._host, child)

    async def get_child_file(self, name: str, create: bool = False) -> FileToken:
        child = self._child_path(name)
        async_child = anyio.Path(child)
        with _translate_os_errors(child):
            if await async_child.is_file():
                self._host.ensure_allowed(child, "read")
                return LocalFileToken(self._host, child)
            if await async_child.exists():
                raise NotFoundError(f"{name} is not a file.")
            if not create:
                raise NotFoundError(f"File {name} was not found.")
            self._host.ensure_allowed(child, "readwrite")
            await async_child.touch()
        return LocalFileToken(self._host, child)

    async def enumerate_entries(self) -> AsyncIterator[Union[DirectoryToken, FileToken]]:
        self._host.ensure_allowed(self.path, "read")
        children: list[anyio.Path] = []
        with _translate_os_errors(self.path):
            async for child in anyio.Path(self.path).iterdir():
                children.append(child)
        for child in sorted(children, key=lambda p: p.name):
            if await child.is_dir():
                yield LocalDirectoryToken(self._host, Path(child))
            else:
                yield LocalFileToken(self._host, Path(child))


class LocalHost(HostCapabilityProvider):
    """
    Hands out tokens for local paths and remembers which roots the user granted.
    Grants live only as long as this object, so a new host starts every root at "prompt".
    """

    def __init__(
        self,
        picker: Picker,
        prompt: PermissionPrompt = allow_all,
        grant_on_pick: bool = True,
    ) -> None:
        self._picker = picker
        self._prompt = prompt
        self._grant_on_pick = grant_on_pick
        self._granted: dict[Path, PermissionMode] = {}
        self._denied: set[Path] = set()

    def permission_state(self, path: Path, mode: PermissionMode) -> PermissionState:
        resolved = path.resolve(strict=False)
        for candidate in (resolved, *resolved.parents):
            granted_mode = self._granted.get(candidate)
            if granted_mode is not None and (granted_mode == "readwrite" or mode == "read"):
                return "granted"
        if resolved in self._denied:
            return "denied"
        return "prompt"

    def ensure_allowed(self, path: Path, mode: PermissionMode) -> None:
        if self.permission_state(path, mode) != "granted":
            raise AccessDeniedError(f"No {mode} permission for {path.name or path}.")

    def grant(self, path: Path, mode: PermissionMode) -> None:
        resolved = path.resolve(strict=False)
        self._denied.discard(resolved)
        if self._granted.get(resolved) != "readwrite":
            self._granted[resolved] = mode

    def revoke(self, path: Path, deny: bool = False) -> None:
        resolved = path.resolve(strict=False)
        self._granted.pop(resolved, None)
        if deny:
            self._denied.add(resolved)
        logger.debug("Revoked permission for %s", resolved)

    async def request_permission(self, path: Path, mode: PermissionMode) -> PermissionState:
        if self.permission_state(path, mode) == "granted":
            return "granted"
        answer = self._prompt(path, mode)
        if inspect.isawaitable(answer):
            answer = await answer
        if answer:
            self.grant(path, mode)
            return "granted"
        self._denied.add(path.resolve(strict=False))
        return "denied"

    async def pick_directory(self, options: PickerOptions) -> DirectoryToken:
        chosen = await self._picker.choose_directory(options)
        if chosen is None:
            raise PickerCancelledError("The user cancelled the directory picker.")
        if not await anyio.Path(chosen).is_dir():
            raise NotFoundError(f"Picked directory {chosen} does not exist.")
        if self._grant_on_pick:
            self.grant(chosen, options.mode)
        return LocalDirectoryToken(self, chosen)

    async def pick_file_to_open(self, options: PickerOptions) -> FileToken:
        chosen = await self._picker.choose_file_to_open(options)
        if chosen is None:
            raise PickerCancelledError("The user cancelled the file picker.")
        if not await anyio.Path(chosen).is_file():
            raise NotFoundError(f"Picked file {chosen} does not exist.")
        self.grant(chosen, "read")
        return LocalFileToken(self, chosen)

    async def pick_file_to_save(self, options: PickerOptions) -> FileToken:
        chosen = await self._picker.choose_file_to_save(options)
        if chosen is None:
            raise PickerCancelledError("The user cancelled the save picker.")
        self.grant(chosen, "readwrite")
        return LocalFileToken(self, chosen)

    def export_token(self, token: DirectoryToken) -> dict[str, Any]:
        if not isinstance(token, LocalDirectoryToken):
            raise HostApiError(f"Cannot export foreign token {type(token).__name__}.")
        return {"kind": "local", "path": str(token.path)}

    def import_token(self, data: dict[str, Any]) -> DirectoryToken:
        if data.get("kind") != "local" or not isinstance(data.get("path"), str):
            raise HostApiError(f"Unrecognised token data: {data!r}")
        return LocalDirectoryToken(self, Path(data["path"]))
