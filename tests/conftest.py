"""
Shared fixtures for the simple-include test suite.

Provides common test fixtures including:
- Source and target directory fixtures
- A sample tree with includes, nested directories and a binary file
- Engines bound to the temporary roots
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
import structlog

from simple_include.engine import IncludeEngine

# ==============================================================================
# Sample Content
# ==============================================================================

BINARY_CONTENT = bytes([0, 159, 146, 150, 10, 255, 254])


# ==============================================================================
# Logging
# ==============================================================================

@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo structlog configuration done by CLI tests."""
    yield
    structlog.reset_defaults()


# ==============================================================================
# Path Fixtures
# ==============================================================================

@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Canonical temporary workspace directory."""
    return tmp_path.resolve()


@pytest.fixture
def src_dir(workspace: Path) -> Path:
    """Create the source directory."""
    path = workspace / "src"
    path.mkdir()
    return path


@pytest.fixture
def target_dir(workspace: Path) -> Path:
    """Create the target directory."""
    path = workspace / "target"
    path.mkdir()
    return path


@pytest.fixture
def engine(src_dir: Path, target_dir: Path) -> IncludeEngine:
    """Engine bound to the temporary source and target roots."""
    return IncludeEngine(src_dir, target_dir)


# ==============================================================================
# Sample Tree
# ==============================================================================

@pytest.fixture
def sample_tree(src_dir: Path) -> Path:
    """
    Create a source tree exercising the main features.

    main.txt includes greeting.txt, docs/page.md includes ../greeting.txt
    and a missing file, and image.bin is binary.
    """
    (src_dir / "main.txt").write_text("--include greeting.txt\nHello.\n")
    (src_dir / "greeting.txt").write_text("Hi there.")
    (src_dir / "docs").mkdir()
    (src_dir / "docs" / "page.md").write_text(
        "# Page\n--include ../greeting.txt\n--include missing.txt\n"
    )
    (src_dir / "image.bin").write_bytes(BINARY_CONTENT)
    return src_dir
