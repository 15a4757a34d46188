"""Validation of client-supplied relative paths."""

from __future__ import annotations

import logging
import re

from scoped_files.errors import PathErrorKind, PathValidationError

logger = logging.getLogger(__name__)

ROOT_PATHS = frozenset({"", ".", "./"})
# Substring matches, so names that merely contain one of these are refused too.
SENSITIVE_NAMES = ("system", "windows", "program files", "etc", "var")
DRIVE_PREFIX_RE = re.compile(r"^[A-Za-z]:")
REPEATED_SEPARATORS_RE = re.compile(r"/+")


def normalize_separators(path: str) -> str:
    return path.replace("\\", "/")


def is_root_path(path: str) -> bool:
    return path in ROOT_PATHS or path == "/"


def validate_path(path: str, grant_active: bool = False) -> None:
    """
    Raise PathValidationError unless ``path`` is a safe path relative to the active root.
    The empty string, ``.`` and ``./`` are accepted and mean the root itself.
    """
    logger.debug("Validating path %r (grant active: %s)", path, grant_active)
    if not isinstance(path, str):
        raise PathValidationError(PathErrorKind.EMPTY, "Invalid file path provided.")
    if path in ROOT_PATHS:
        return

    normalized = normalize_separators(path)
    if any(segment == ".." for segment in normalized.split("/")):
        logger.warning("Directory traversal attempt: %r", path)
        raise PathValidationError(PathErrorKind.TRAVERSAL, "Directory traversal is not allowed.")

    if normalized.startswith("/") or DRIVE_PREFIX_RE.match(normalized):
        logger.warning("Absolute path refused: %r", path)
        if grant_active:
            message = "Use paths relative to the selected directory."
        else:
            message = "Absolute paths are not allowed."
        raise PathValidationError(PathErrorKind.ABSOLUTE, message)

    lowered = normalized.lower()
    if any(name in lowered for name in SENSITIVE_NAMES):
        logger.warning("Sensitive path refused: %r", path)
        raise PathValidationError(PathErrorKind.SENSITIVE, "Access to sensitive directories is not allowed.")


def segments(path: str) -> list[str]:
    return [segment for segment in normalize_separators(path).split("/") if segment and segment != "."]


def join_relative(directory: str, name: str) -> str:
    """Join a listed entry name onto the directory it was listed from."""
    directory = normalize_separators(directory)
    if is_root_path(directory):
        return name
    return REPEATED_SEPARATORS_RE.sub("/", f"{directory}/{name}")
