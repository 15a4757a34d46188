"""Flat command surface consumed by a chat dispatcher or an agent toolset."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from pydantic_ai.toolsets import FunctionToolset

from scoped_files.errors import FileAccessError
from scoped_files.file_access import FileAccessService

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "scoped_files"


def _error(message: str) -> dict[str, Any]:
    return {"error": True, "message": message}


class FileAccessCommands:
    def __init__(self, service: FileAccessService) -> None:
        self._service = service
        self.debug_mode: bool = service.settings.debug
        if self.debug_mode:
            logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)

    async def request_access(self) -> dict[str, Any]:
        """Ask the user to pick a directory and remember it for later sessions."""
        result = await self._service.request_access()
        if not result.get("success"):
            return _error(result["message"])
        return {"success": True, "directory": result["directory_name"], "message": result["message"]}

    async def list_files(self, directory: str = "") -> dict[str, Any]:
        """List files and folders in a directory relative to the granted root."""
        try:
            files = await self._service.list_files(directory)
        except FileAccessError as exc:
            logger.error("Error in list files command: %s", exc)
            return _error(f"Failed to list files: {exc}")
        has_access = self._service.has_directory_permission()
        root = self._service.get_root_directory_name() if has_access else None
        where = directory or (root if has_access else "selected directory")
        return {
            "type": "fileList",
            "files": [
                {"name": entry.name, "kind": entry.kind, "path": entry.relative_path}
                for entry in files
            ],
            "directory": directory,
            "hasDirectoryAccess": has_access,
            "rootDirectory": root,
            "message": f"Listed {len(files)} files in {where}.",
        }

    async def read_file(self, path: str = "") -> dict[str, Any]:
        """Read a file. Text comes back as a string, anything else as a base64 data URL."""
        try:
            result = await self._service.read_file(path)
        except FileAccessError as exc:
            logger.error("Error in read file command: %s", exc)
            return _error(f"Failed to read file: {exc}")
        return {
            "type": "file",
            "content": result.content,
            "name": result.name,
            "size": result.size,
            "mimeType": result.mime_type,
            "lastModified": result.last_modified,
            "message": f'File "{path or result.name}" read successfully.',
        }

    async def write_file(self, path: str = "", content: str = "") -> dict[str, Any]:
        """Write text content to a file, creating missing folders."""
        if not content:
            return _error("No content provided for writing")
        try:
            await self._service.write_file(path, content)
        except FileAccessError as exc:
            logger.error("Error in write file command: %s", exc)
            return _error(f"Failed to write file: {exc}")
        label = f'"{path}" ' if path else ""
        return {"success": True, "message": f"File {label}written successfully."}

    async def list_grants(self) -> dict[str, Any]:
        """List remembered directories and whether access is still granted."""
        try:
            statuses = await self._service.get_stored_directories()
        except FileAccessError as exc:
            logger.error("Error in list directories command: %s", exc)
            return _error(f"Failed to list directories: {exc}")
        directories = []
        for status in statuses:
            item: dict[str, Any] = {
                "id": status.id,
                "name": status.display_name,
                "hasPermission": status.has_permission,
                "dateAdded": status.created_at.isoformat(),
            }
            if status.error is not None:
                item["error"] = status.error
            directories.append(item)
        return {
            "type": "directoryList",
            "directories": directories,
            "message": f"Listed {len(directories)} stored directories.",
        }

    async def switch_grant(self, grant_id: str = "") -> dict[str, Any]:
        """Make a remembered directory the active one."""
        if not grant_id:
            return _error("No directory ID provided")
        try:
            result = await self._service.switch_directory(grant_id)
        except FileAccessError as exc:
            logger.error("Error in switch directory command: %s", exc)
            return _error(f"Failed to switch directory: {exc}")
        response: dict[str, Any] = {"success": result["success"], "message": result["message"]}
        if result["success"]:
            response["directory"] = result["directory_name"]
        return response

    async def remove_grant(self, grant_id: str = "") -> dict[str, Any]:
        """Forget a remembered directory."""
        if not grant_id:
            return _error("No directory ID provided")
        try:
            result = await self._service.remove_directory(grant_id)
        except FileAccessError as exc:
            logger.error("Error in remove directory command: %s", exc)
            return _error(f"Failed to remove directory: {exc}")
        return {"success": result["success"], "message": result["message"]}

    def toggle_debug(self) -> dict[str, Any]:
        self.debug_mode = not self.debug_mode
        level = logging.DEBUG if self.debug_mode else logging.INFO
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)
        state = "enabled" if self.debug_mode else "disabled"
        logger.info("Debug mode %s", state)
        return {"success": True, "message": f"Debug mode {state}."}

    async def dispatch(self, command: str, args: Mapping[str, Any] | None = None) -> dict[str, Any]:
        args = args or {}
        logger.debug("Command received: %s %s", command, dict(args))
        if command == "requestAccess":
            return await self.request_access()
        if command == "listFiles":
            return await self.list_files(args.get("directory") or "")
        if command == "readFile":
            return await self.read_file(args.get("path") or "")
        if command == "writeFile":
            return await self.write_file(args.get("path") or "", args.get("content") or "")
        if command == "listGrants":
            return await self.list_grants()
        if command == "switchGrant":
            return await self.switch_grant(args.get("id") or "")
        if command == "removeGrant":
            return await self.remove_grant(args.get("id") or "")
        if command == "toggleDebug":
            return self.toggle_debug()
        logger.error("Unknown command: %s", command)
        return _error(f"Unknown command: {command}")


def register_tools(commands: FileAccessCommands, toolset: FunctionToolset[Any]) -> FunctionToolset[Any]:
    tools: list[tuple[Callable[..., Awaitable[dict[str, Any]]], str, str]] = [
        (commands.request_access, "request_directory_access", "Request access to a local directory."),
        (commands.list_files, "list_files", "List files in a directory of the granted folder."),
        (commands.read_file, "read_file", "Read a file from the granted folder."),
        (commands.write_file, "write_file", "Write content to a file in the granted folder."),
        (commands.list_grants, "list_directories", "List all stored directories."),
        (commands.switch_grant, "switch_directory", "Switch to a different stored directory."),
        (commands.remove_grant, "remove_directory", "Remove a stored directory."),
    ]
    for func, name, description in tools:
        toolset.add_function(func=func, name=name, description=description)
    return toolset


def build_toolset(commands: FileAccessCommands) -> FunctionToolset[Any]:
    return register_tools(commands, FunctionToolset())
