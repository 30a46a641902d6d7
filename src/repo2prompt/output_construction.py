from __future__ import annotations

from typing import TYPE_CHECKING, BinaryIO

from repo2prompt.config import (
    DEFAULT_PREAMBLE,
    END_MARKER,
    TOC_HEADER,
    AssemblyReport,
    BinaryMetadata,
    section_header,
)
from repo2prompt.exceptions import PreambleError
from repo2prompt.file_manipulation import copy_with_limit, is_binary_file
from repo2prompt.logging import logger
from repo2prompt.progress import NullProgress

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from repo2prompt.progress import ProgressObserver


def _encode(text: str) -> bytes:
    # undecodable file names come back from os.walk as surrogate escapes
    return text.encode("utf-8", errors="surrogateescape")


def load_preamble(path: Path | None) -> str:
    """Load the text written before the table of contents.

    Args:
        path (Path | None): the preamble file, or None for the built-in text

    Raises:
        PreambleError: if the file cannot be read.

    Returns:
        str: the preamble, always ending with a newline
    """
    if path is None:
        logger.debug("Using default preamble.")
        return DEFAULT_PREAMBLE
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PreambleError(file=path, reason=str(e)) from e
    logger.debug("Custom preamble loaded (%s).", path)
    return text if text.endswith("\n") else text + "\n"


def build_table_of_contents(files: Sequence[str]) -> str:
    """Build the numbered table of contents.

    Args:
        files (Sequence[str]): the resolved relative paths, in document order

    Returns:
        str: the header line, one `<n>. <path>` line per file and a blank line
    """
    lines = [TOC_HEADER]
    lines.extend(f"{index}. {rel}\n" for index, rel in enumerate(files, start=1))
    lines.append("\n")
    return "".join(lines)


def write_files_with_index(
    root: Path,
    files: Sequence[str],
    sink: BinaryIO,
    max_size: int,
    *,
    progress: ProgressObserver | None = None,
) -> AssemblyReport:
    """Write one section per file, numbered like the table of contents.

    Each file is stat-ed, classified and opened before its header is written,
    so an unreadable file produces no output at all. Its number is left unused
    and the following sections keep their table-of-contents numbers.

    Args:
        root (Path): the repository root
        files (Sequence[str]): the resolved relative paths, in document order
        sink (BinaryIO): the output document
        max_size (int): byte ceiling for the content of each text file
        progress (ProgressObserver | None): notified once per file, then stopped

    Returns:
        AssemblyReport: which files were written, skipped, truncated or binary
    """
    observer = progress if progress is not None else NullProgress()
    report = AssemblyReport()
    try:
        for index, rel in enumerate(files, start=1):
            path = root / rel
            try:
                st = path.stat()
                binary = is_binary_file(path)
                source = None if binary else path.open("rb")
            except OSError as e:
                logger.warning("Unable to access or read %s. Skipping.", rel, error=str(e))
                report.skipped.append(rel)
                observer.increment()
                continue

            sink.write(_encode(section_header(index, rel)))
            if source is None:
                sink.write(_encode(BinaryMetadata.from_stat(st.st_size, st.st_mtime).render()))
                report.binary.append(rel)
                report.written.append(rel)
                logger.debug("Binary metadata written for: %s", rel)
                observer.increment()
                continue

            if st.st_size > max_size:
                logger.debug("File %s (%d bytes) exceeds max-size %d. Truncating.", rel, st.st_size, max_size)
            try:
                with source:
                    truncated = copy_with_limit(source, sink, max_size)
            except OSError as e:
                sink.write(b"\n")
                logger.warning("Read error in %s, section left incomplete.", rel, error=str(e))
                report.skipped.append(rel)
            else:
                sink.write(b"\n")
                if truncated:
                    report.truncated.append(rel)
                report.written.append(rel)
                logger.debug("Content written for: %s", rel)
            observer.increment()
    finally:
        observer.stop()
    return report


def write_document(
    sink: BinaryIO,
    root: Path,
    files: Sequence[str],
    *,
    preamble: str,
    max_size: int,
    progress: ProgressObserver | None = None,
) -> AssemblyReport:
    """Write the whole document: preamble, table of contents, sections, end marker.

    The sink is not closed here; it belongs to the caller that opened it.

    Args:
        sink (BinaryIO): the output document
        root (Path): the repository root
        files (Sequence[str]): the resolved relative paths, in document order
        preamble (str): newline-terminated text written first
        max_size (int): byte ceiling for the content of each text file
        progress (ProgressObserver | None): progress observer for the sections

    Returns:
        AssemblyReport: the outcome of the section loop
    """
    sink.write(_encode(preamble))
    sink.write(_encode(build_table_of_contents(files)))
    logger.debug("Table of contents written.")
    report = write_files_with_index(root, files, sink, max_size, progress=progress)
    sink.write(_encode(END_MARKER))
    return report
