"""Public package exports."""

from scoped_files.commands import FileAccessCommands
from scoped_files.commands import build_toolset
from scoped_files.file_access import FileAccessService
from scoped_files.grant_manager import DirectoryGrantManager
from scoped_files.grant_manager import SessionState
from scoped_files.host.local import LocalHost
from scoped_files.host.local import PresetPicker
from scoped_files.path_validation import validate_path
from scoped_files.permission_store import JsonPermissionStore
from scoped_files.permission_store import MemoryPermissionStore
from scoped_files.settings import AccessSettings
from scoped_files.settings import load_settings

__all__ = [
    "AccessSettings",
    "DirectoryGrantManager",
    "FileAccessCommands",
    "FileAccessService",
    "JsonPermissionStore",
    "LocalHost",
    "MemoryPermissionStore",
    "PresetPicker",
    "SessionState",
    "build_toolset",
    "load_settings",
    "validate_path",
]
