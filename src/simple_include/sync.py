"""
Initial sync of the source tree into the target tree.

Runs once at startup, before watching begins, so that every output exists
and the dependency graph knows every include.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from simple_include.engine import IncludeEngine
from simple_include.errors import ExpansionError
from simple_include.paths import are_paths_equal

logger = structlog.get_logger(__name__)


@dataclass
class SyncReport:
    """Outcome of the initial sync pass."""

    files: int = 0
    expanded: int = 0
    includes: int = 0
    errors: int = 0
    failed_paths: list[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True if every file was expanded."""
        return self.errors == 0


def list_source_files(source_root: Path, target_root: Path) -> list[Path]:
    """
    List every regular file under the source root.

    The target root is never descended into, so a target nested in the
    source tree is not read back as input. Symlinks are skipped.

    Args:
        source_root: Directory to walk.
        target_root: Directory to exclude.

    Returns:
        Absolute file paths in a stable order.
    """
    if are_paths_equal(source_root, target_root):
        return []

    files: list[Path] = []
    for root, dirs, filenames in os.walk(source_root):
        root_path = Path(root)

        dirs[:] = sorted(
            d
            for d in dirs
            if not are_paths_equal(root_path / d, target_root)
            and not (root_path / d).is_symlink()
        )

        for filename in sorted(filenames):
            file_path = root_path / filename
            if file_path.is_symlink() or not file_path.is_file():
                continue
            files.append(file_path)

    return files


def initial_sync(engine: IncludeEngine, watching: bool = False) -> SyncReport:
    """
    Expand every source file and populate the dependency graph.

    A failure on one file is logged and counted; the pass continues with
    the next file.

    Args:
        engine: Engine holding the roots, prefix and graph.
        watching: Whether a watch session follows (diagnostics only).

    Returns:
        SyncReport with counts and failed paths.
    """
    report = SyncReport()
    logger.info(
        "Syncing source tree",
        source=str(engine.source_root),
        target=str(engine.target_root),
    )

    for file_path in list_source_files(engine.source_root, engine.target_root):
        relative = engine.relative_to_source(file_path)
        report.files += 1
        try:
            includes = engine.expand_file(relative)
        except ExpansionError as e:
            logger.warning("Error processing file", path=str(relative), kind=e.kind.value)
            report.errors += 1
            report.failed_paths.append(relative)
            continue

        report.expanded += 1
        report.includes += len(includes)
        for included in includes:
            logger.info(
                "File includes",
                path=str(relative),
                included=str(included),
                regenerate_on_change=watching,
            )

    logger.info(
        "Sync complete",
        files=report.files,
        expanded=report.expanded,
        includes=report.includes,
        errors=report.errors,
    )
    return report
