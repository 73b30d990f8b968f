"""
Dependency graph between included files and the files that include them.

Edges are only ever added. A directive removed from a file leaves its
edge in place until the session ends, which can cause a harmless extra
re-expansion later on.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Iterable, Iterator


class DependencyGraph:
    """Mapping from an included path to the set of paths that include it."""

    def __init__(self) -> None:
        self._dependents: dict[Path, set[Path]] = defaultdict(set)

    def record(self, included: Path, including: Path) -> None:
        """Record that ``including`` includes ``included``."""
        self._dependents[included].add(including)

    def record_all(self, includes: Iterable[Path], including: Path) -> None:
        """Record every include found by one expansion of ``including``."""
        for included in includes:
            self.record(included, including)

    def dependents_of(self, path: Path) -> frozenset[Path]:
        """
        Get the files known to include a path.

        Returns:
            The direct includers, empty if the path was never recorded.
        """
        dependents = self._dependents.get(path)
        if dependents is None:
            return frozenset()
        return frozenset(dependents)

    def __contains__(self, path: object) -> bool:
        return path in self._dependents

    def __len__(self) -> int:
        return len(self._dependents)

    @property
    def edge_count(self) -> int:
        """Total number of recorded edges."""
        return sum(len(dependents) for dependents in self._dependents.values())

    def edges(self) -> Iterator[tuple[Path, Path]]:
        """Iterate over ``(included, including)`` pairs."""
        for included, dependents in self._dependents.items():
            for including in sorted(dependents):
                yield included, including
