"""
Per-file regeneration shared by the initial sync and the watch loop.

The engine owns the canonical source and target roots, the include prefix
and the dependency graph. All paths handed to it are relative to the
source root.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from simple_include.errors import PathResolutionError
from simple_include.expander import DEFAULT_INCLUDE_PREFIX, expand
from simple_include.graph import DependencyGraph
from simple_include.paths import is_under, normalize_path, relative_to_root

logger = structlog.get_logger(__name__)


class IncludeEngine:
    """
    Expands source files into the mirrored target tree.

    Features:
    - Mirrored output paths under the target root
    - Dependency edges recorded after each successful expansion
    - Root containment checks for watch-event paths
    """

    def __init__(
        self,
        source_root: Path,
        target_root: Path,
        prefix: str = DEFAULT_INCLUDE_PREFIX,
        graph: DependencyGraph | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            source_root: Canonical absolute source directory.
            target_root: Canonical absolute target directory.
            prefix: Include prefix.
            graph: Dependency graph. A new empty graph if not provided.
        """
        self.source_root = normalize_path(source_root)
        self.target_root = normalize_path(target_root)
        self.prefix = prefix
        self.graph = graph if graph is not None else DependencyGraph()

    def source_path(self, relative: Path) -> Path:
        """Absolute source path for a relative path."""
        return self.source_root / relative

    def output_path(self, relative: Path) -> Path:
        """Mirrored output path for a relative path."""
        return self.target_root / relative

    def relative_to_source(self, path: Path) -> Path:
        """
        Relate a path to the source root.

        Raises:
            PathResolutionError: If the path lies outside the source root.
        """
        return relative_to_root(path, self.source_root)

    def is_in_target(self, path: Path) -> bool:
        """Check whether a path lies under the target root."""
        return is_under(path, self.target_root)

    def include_key(self, included: Path) -> Path:
        """
        Graph key for an included path.

        Includes inside the source root are keyed relative to it; anything
        else keeps its normalized absolute path.
        """
        try:
            return self.relative_to_source(included)
        except PathResolutionError:
            return normalize_path(included)

    def expand_file(self, relative: Path, record: bool = True) -> list[Path]:
        """
        Expand one source file into its mirrored output.

        Args:
            relative: Path relative to the source root.
            record: Record the discovered includes in the graph.

        Returns:
            Graph keys of the discovered includes.

        Raises:
            ExpansionError: If the file could not be expanded.
        """
        includes = expand(
            self.source_path(relative),
            self.output_path(relative),
            self.prefix,
        )
        keys = [self.include_key(included) for included in includes]
        if record:
            self.graph.record_all(keys, relative)
        return keys
