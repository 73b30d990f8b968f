"""
Error types for simple-include.

Per-file failures carry a FailureKind so callers can branch on the kind
of failure without inspecting platform error codes.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class SimpleIncludeError(Exception):
    """Base exception for simple-include errors."""

    pass


class StartupError(SimpleIncludeError):
    """Raised when the source or target root cannot be prepared."""

    pass


class ConfigurationError(SimpleIncludeError):
    """Raised when there's a configuration problem."""

    pass


class FailureKind(str, Enum):
    """Kinds of per-file failures."""

    NOT_FOUND = "not_found"
    INVALID_ENCODING = "invalid_encoding"
    PERMISSION_OR_OTHER_IO = "permission_or_other_io"


def classify_error(error: BaseException) -> FailureKind:
    """Map an exception raised by file I/O to a FailureKind."""
    if isinstance(error, FileNotFoundError):
        return FailureKind.NOT_FOUND
    if isinstance(error, UnicodeDecodeError):
        return FailureKind.INVALID_ENCODING
    return FailureKind.PERMISSION_OR_OTHER_IO


class ExpansionError(SimpleIncludeError):
    """Raised when a single file cannot be expanded."""

    def __init__(
        self,
        path: Path,
        kind: FailureKind,
        cause: BaseException | None = None,
    ) -> None:
        self.path = path
        self.kind = kind
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Cannot expand {path} ({kind.value}){detail}")

    @classmethod
    def from_os_error(cls, path: Path, error: BaseException) -> "ExpansionError":
        """Build an ExpansionError classified from an I/O exception."""
        return cls(path, classify_error(error), error)


class PathResolutionError(SimpleIncludeError):
    """Raised when a path cannot be related to a root directory."""

    def __init__(self, path: Path, root: Path) -> None:
        self.path = path
        self.root = root
        super().__init__(f"{path} is not under {root}")
