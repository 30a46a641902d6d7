from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from repo2prompt.config import (
    BINARY_EXTENSION,
    BINARY_SNIFF_BYTES,
    INFRA_DIRS,
    STREAM_CHUNK_SIZE,
    TRUNCATION_MARKER,
    PathConvention,
)
from repo2prompt.ignore_spec import compile_globs, match_any
from repo2prompt.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from repo2prompt.config import IgnoreSpec


def relpath(path: Path, root: Path, convention: PathConvention = PathConvention.POSIX) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from
        convention (PathConvention): separator convention used to join the parts

    Returns:
        str: the relative path from root to path, joined with the convention's separator.
            If path is not under root, returns the original path as a string.
    """
    try:
        return convention.separator.join(path.relative_to(root).parts)
    except ValueError:
        return str(path)


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
        return stat.S_ISREG(st.st_mode)
    except OSError:
        return False


def walk_files(root: Path, convention: PathConvention = PathConvention.POSIX) -> list[str]:
    """Walk the directory tree rooted at `root` and return every regular file.

    Dotfiles are included. Directories named in `INFRA_DIRS` are pruned at any
    depth and symlinked directories are not followed.

    Args:
        root (Path): the root directory to walk
        convention (PathConvention): separator convention of the returned paths

    Returns:
        list[str]: relative paths, sorted case-insensitively (exact path breaks ties)
    """
    results: list[str] = []
    for current, dirs, files in os.walk(root):
        dirs[:] = [d for d in dirs if d not in INFRA_DIRS]
        for f in files:
            p = Path(current) / f
            if is_regular_file(p):
                results.append(relpath(p, root, convention))
    return sorted(results, key=lambda r: (r.lower(), r))


def reserved_paths(
    root: Path,
    *paths: str | Path | None,
    convention: PathConvention = PathConvention.POSIX,
) -> set[str]:
    """Turn the ignore file, output file and preamble file into relative paths.

    Relative inputs are taken as written (relative to `root`); absolute inputs
    are kept only when they live under `root`.

    Args:
        root (Path): the repository root
        *paths (str | Path | None): candidate paths, `None` entries are ignored
        convention (PathConvention): separator convention of the returned paths

    Returns:
        set[str]: the relative paths that must never appear in the document
    """
    resolved_root = root.resolve()
    out: set[str] = set()
    for raw in paths:
        if raw is None or str(raw).strip() == "":
            continue
        p = Path(raw)
        if p.is_absolute():
            try:
                parts = p.resolve().relative_to(resolved_root).parts
            except ValueError:
                continue
        else:
            parts = tuple(part for part in p.parts if part != ".")
        if parts:
            out.add(convention.separator.join(parts))
    return out


def resolve_file_set(
    root: Path,
    spec: IgnoreSpec,
    *,
    reserved: Iterable[str] = (),
    convention: PathConvention = PathConvention.POSIX,
) -> list[str]:
    """Resolve the ordered list of files to include in the document.

    The scan minus the exclude matches is united with the files of the
    *unfiltered* scan matching a re-include pattern, so a re-include wins over
    any exclude. Reserved paths are removed before and after the union.

    Args:
        root (Path): the repository root
        spec (IgnoreSpec): exclude and re-include patterns
        reserved (Iterable[str]): relative paths to drop unconditionally
        convention (PathConvention): separator convention of paths and patterns

    Returns:
        list[str]: unique relative paths; survivors in scan order, then the
            re-included files in scan order
    """
    scan = walk_files(root, convention)
    blocked = set(reserved)
    excludes = compile_globs(spec.exclude_patterns, convention)
    reincludes = compile_globs(spec.reinclude_patterns, convention)

    kept = [r for r in scan if r not in blocked and not match_any(r, excludes)]
    logger.debug("%d files after exclude patterns", len(kept))

    merged: dict[str, None] = dict.fromkeys(kept)
    for r in scan:
        if match_any(r, reincludes):
            merged.setdefault(r, None)

    for r in blocked:
        merged.pop(r, None)
    logger.debug("%d files after re-include patterns", len(merged))
    return list(merged)


def is_binary_file(path: Path) -> bool:
    """Check if a file should be rendered as metadata instead of content.

    A `.bin` extension (any case) is enough. Otherwise the first 512 bytes are
    scanned for a null byte. Unreadable files count as text so that the caller
    decides what to do with them.

    Args:
        path (Path): the file to classify

    Returns:
        bool: True if the file is considered binary
    """
    if path.suffix.lower() == BINARY_EXTENSION:
        return True
    try:
        with path.open("rb") as f:
            head = f.read(BINARY_SNIFF_BYTES)
    except OSError:
        return False
    return b"\x00" in head


@dataclass(slots=True)
class TruncationState:
    """Byte accounting for one file copied under a ceiling."""

    max_size: int
    bytes_written: int = 0
    truncated: bool = False

    def accept(self, chunk: bytes) -> bytes:
        """Return the part of `chunk` that may still be written.

        Flips `truncated` when the chunk does not fit entirely; from then on
        every chunk is rejected.
        """
        if self.truncated:
            return b""
        if self.bytes_written + len(chunk) > self.max_size:
            remaining = self.max_size - self.bytes_written
            self.bytes_written = self.max_size
            self.truncated = True
            return chunk[:remaining]
        self.bytes_written += len(chunk)
        return chunk


def copy_with_limit(
    source: BinaryIO,
    sink: BinaryIO,
    max_size: int,
    *,
    chunk_size: int = STREAM_CHUNK_SIZE,
) -> bool:
    """Copy `source` into `sink`, stopping at `max_size` bytes.

    When the ceiling is crossed, the fitting prefix of the chunk is written,
    followed by the truncation marker, and `source` is not read any further.
    The cut is made on bytes, so a multi-byte character may be split.

    Args:
        source (BinaryIO): the file to read from
        sink (BinaryIO): the output document
        max_size (int): the byte ceiling for this file
        chunk_size (int): the read size

    Raises:
        OSError: if reading the source fails.

    Returns:
        bool: True if the content was truncated
    """
    state = TruncationState(max_size=max_size)
    for chunk in iter(lambda: source.read(chunk_size), b""):
        sink.write(state.accept(chunk))
        if state.truncated:
            sink.write(TRUNCATION_MARKER)
            break
    return state.truncated


def stream_file_with_limit(
    path: Path,
    sink: BinaryIO,
    max_size: int,
    *,
    chunk_size: int = STREAM_CHUNK_SIZE,
) -> bool:
    """Open `path` and copy it into `sink` under a byte ceiling.

    Args:
        path (Path): the file to copy
        sink (BinaryIO): the output document
        max_size (int): the byte ceiling
        chunk_size (int): the read size

    Raises:
        OSError: if the file cannot be opened or read.

    Returns:
        bool: True if the content was truncated
    """
    with path.open("rb") as source:
        truncated = copy_with_limit(source, sink, max_size, chunk_size=chunk_size)
    if truncated:
        logger.debug("File truncated after %d bytes: %s", max_size, path)
    return truncated
