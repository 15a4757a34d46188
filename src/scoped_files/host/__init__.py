"""Host capability provider interface and the local filesystem provider."""

from scoped_files.host.base import DirectoryToken
from scoped_files.host.base import FileSnapshot
from scoped_files.host.base import FileToken
from scoped_files.host.base import HostCapabilityProvider
from scoped_files.host.base import PermissionMode
from scoped_files.host.base import PermissionState
from scoped_files.host.base import WritableStream
from scoped_files.host.local import LocalHost
from scoped_files.host.local import Picker
from scoped_files.host.local import PresetPicker

__all__ = [
    "DirectoryToken",
    "FileSnapshot",
    "FileToken",
    "HostCapabilityProvider",
    "LocalHost",
    "PermissionMode",
    "PermissionState",
    "Picker",
    "PresetPicker",
    "WritableStream",
]
