"""Record types for grants, listings and file reads."""

from scoped_files.models.file_content import FileContent
from scoped_files.models.file_entry import FileEntry
from scoped_files.models.grant import Grant
from scoped_files.models.grant import GrantRecord
from scoped_files.models.grant_status import GrantStatus
from scoped_files.models.picker_options import PickerOptions

__all__ = [
    "FileContent",
    "FileEntry",
    "Grant",
    "GrantRecord",
    "GrantStatus",
    "PickerOptions",
]
