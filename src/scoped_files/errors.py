"""Error types raised by the scoped file access layer."""

from __future__ import annotations

from enum import Enum


class FileAccessError(Exception):
    """Base class for every error the access layer raises on purpose."""


class PathErrorKind(str, Enum):
    EMPTY = "empty"
    TRAVERSAL = "traversal"
    ABSOLUTE = "absolute"
    SENSITIVE = "sensitive"


class PathValidationError(FileAccessError, ValueError):
    def __init__(self, kind: PathErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class AccessDeniedError(FileAccessError, PermissionError):
    pass


class NoActiveGrantError(AccessDeniedError):
    pass


class PickerCancelledError(AccessDeniedError):
    pass


class NotFoundError(FileAccessError, FileNotFoundError):
    pass


class LimitExceededError(FileAccessError):
    pass


class DisallowedTypeError(LimitExceededError):
    pass


class StorageError(FileAccessError):
    pass


class HostApiError(FileAccessError):
    pass
