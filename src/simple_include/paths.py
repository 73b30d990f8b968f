"""
Lexical path handling.

Paths coming from the watcher are compared against the canonical roots
without touching the filesystem, so ``..`` and ``.`` are resolved
component by component instead of with ``Path.resolve``.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from simple_include.errors import PathResolutionError


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """
    Normalize a path using only lexical rules.

    ``..`` drops the last collected component (a no-op when nothing has
    been collected, and never the root itself), ``.`` is dropped and every
    other component is kept as-is.

    Args:
        path: Path to normalize.

    Returns:
        The normalized path.
    """
    pure = PurePath(path)
    anchor = pure.anchor
    parts: list[str] = []

    for part in pure.parts:
        if part == anchor and anchor:
            continue
        if part == "..":
            if parts:
                parts.pop()
        elif part == ".":
            continue
        else:
            parts.append(part)

    return Path(anchor, *parts)


def are_paths_equal(first: str | os.PathLike[str], second: str | os.PathLike[str]) -> bool:
    """Check whether two paths are equal after lexical normalization."""
    return normalize_path(first) == normalize_path(second)


def is_under(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> bool:
    """Check whether a path lies under a root (the root included)."""
    return normalize_path(path).is_relative_to(normalize_path(root))


def relative_to_root(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> Path:
    """
    Express a path relative to a root directory.

    Raises:
        PathResolutionError: If the path is not under the root.
    """
    normalized = normalize_path(path)
    normalized_root = normalize_path(root)
    try:
        return normalized.relative_to(normalized_root)
    except ValueError as e:
        raise PathResolutionError(normalized, normalized_root) from e
