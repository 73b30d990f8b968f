"""
Include expansion for a single file.

Reads a source file line by line, replaces every include directive with
the raw content of the file it names (one level only, included content is
not expanded again) and writes the result to the mirrored output path.
Files that are not valid UTF-8 are copied byte for byte.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import structlog

from simple_include.errors import ExpansionError, FailureKind, classify_error
from simple_include.paths import normalize_path

logger = structlog.get_logger(__name__)

DEFAULT_INCLUDE_PREFIX = "--include"


def parse_directive(line: str, prefix: str) -> str | None:
    """
    Extract the include target from a line.

    Args:
        line: Decoded source line without its line ending.
        prefix: Include prefix, e.g. ``--include``.

    Returns:
        The trimmed path text following the prefix, or None if the line
        is not an include directive.
    """
    stripped = line.lstrip()
    if not stripped.startswith(prefix):
        return None
    return stripped[len(prefix):].strip()


def _split_line(raw: bytes) -> bytes:
    """Drop the line ending of a raw line (``\\n`` or ``\\r\\n``)."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw


def _read_include(include_path: Path, path: Path) -> str | None:
    """Read an included file as text, or return None if it can't be used."""
    try:
        return include_path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError, ValueError) as e:
        # ValueError covers paths the OS rejects outright, e.g. an embedded NUL
        kind = classify_error(e)
        if kind is FailureKind.INVALID_ENCODING:
            logger.info("Binary data in include file, skipping", include=str(include_path), file=str(path))
        elif kind is FailureKind.NOT_FOUND:
            logger.info("Include file not found, skipping", include=str(include_path), file=str(path))
        else:
            logger.info(
                "Error reading include file, skipping",
                include=str(include_path),
                file=str(path),
                error=str(e),
            )
        return None


def _copy_binary(path: Path, out_path: Path) -> None:
    """Copy a binary file verbatim to its output path."""
    logger.info("Binary data in file, copying", path=str(path), output=str(out_path))
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(path, out_path)
    except OSError as e:
        raise ExpansionError.from_os_error(path, e) from e


def expand(path: Path, out_path: Path, prefix: str = DEFAULT_INCLUDE_PREFIX) -> list[Path]:
    """
    Expand the include directives of one file into its output file.

    A directive whose target cannot be read as text is left in the output
    unchanged, but its path is still returned so that a later change to
    that file can trigger a rebuild.

    Args:
        path: Source file to expand.
        out_path: Output file, overwritten in full.
        prefix: Include prefix.

    Returns:
        Resolved include paths in order of appearance (may contain
        duplicates). Empty for binary files.

    Raises:
        ExpansionError: If the source can't be opened or read, or the
            output can't be written. The previous output is left alone
            when the source can't be opened.
    """
    try:
        handle = path.open("rb")
    except OSError as e:
        logger.warning("Error opening file for processing", path=str(path), error=str(e))
        raise ExpansionError.from_os_error(path, e) from e

    parent_dir = path.parent
    lines: list[str] = []
    includes: list[Path] = []

    with handle:
        try:
            for raw in handle:
                try:
                    line = _split_line(raw).decode("utf-8")
                except UnicodeDecodeError:
                    _copy_binary(path, out_path)
                    return []

                target = parse_directive(line, prefix)
                if target is None:
                    lines.append(line)
                    continue

                include_path = parent_dir / target
                content = _read_include(include_path, path)
                lines.append(line if content is None else content)
                includes.append(normalize_path(include_path))
        except OSError as e:
            logger.warning("Error reading file", path=str(path), error=str(e))
            raise ExpansionError.from_os_error(path, e) from e

    output = "".join(f"{line}\n" for line in lines)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(output.encode("utf-8"))
    except OSError as e:
        logger.warning("Error writing output file", path=str(out_path), error=str(e))
        raise ExpansionError.from_os_error(out_path, e) from e

    if includes:
        logger.debug("Expanded file", input=str(path), output=str(out_path), includes=len(includes))
    return includes
