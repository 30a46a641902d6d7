from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum, auto

from pydantic import BaseModel, ConfigDict, Field


class PathConvention(StrEnum):
    """Path-separator convention of the host the repository lives on.

    Passed explicitly to the pattern loader and the file-set resolver so they
    never look at the running platform themselves.
    """

    POSIX = auto()
    WINDOWS = auto()

    @classmethod
    def from_os_name(cls, os_name: str) -> PathConvention:
        """Map an `os.name` value to a convention ("nt" is the only backslash host)."""
        return cls.WINDOWS if os_name == "nt" else cls.POSIX

    @property
    def separator(self) -> str:
        """The separator used in repository-relative paths and patterns."""
        return "\\" if self is PathConvention.WINDOWS else "/"


# VCS metadata and dependency/cache directories, pruned at any depth.
INFRA_DIRS = frozenset({
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "__pycache__",
    ".venv",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
})

DEFAULT_IGNORE_FILE = ".repo2promptignore"
DEFAULT_OUTPUT_FILE = "output.txt"
DEFAULT_MAX_SIZE = 1_048_576
PROJECT_CONFIG_FILES = (".repo2prompt.json", ".repo2prompt.yaml", ".repo2prompt.yml")

BINARY_EXTENSION = ".bin"
BINARY_SNIFF_BYTES = 512
STREAM_CHUNK_SIZE = 64 * 1024

TOC_HEADER = "Table of Contents:\n"
TRUNCATION_MARKER = b"\n[TRUNCATED]\n"
END_MARKER = "--END--\n"

DEFAULT_PREAMBLE = (
    "The following is a snapshot of a Git repository, rendered as a plain-text “dump” "
    "for use by a language model. It is structured in three parts:\n\n"
    "1. **Table of Contents:**\n"
    "   A numbered list of every file included, in the order they appear below.\n\n"
    "2. **File Sections:**\n"
    "   Each file is prefixed by:\n\n"
    "   ----[N]\n"
    "   <relative/path/to/file>\n\n"
    "   where `N` is the file’s index (matching the ToC). After that line comes the file’s "
    "contents (or, if it’s binary or too large, a brief metadata/truncation marker).\n\n"
    "3. **End Marker:**\n"
    "   A final line containing `--END--` indicates the end of the repository snapshot. "
    "Any text that follows should be treated as instructions or queries about this repository.\n\n"
    "Use this entire dump as context when answering questions. For example, you can reference "
    "specific files by their ToC number or path, inspect code snippets, identify configuration "
    "values, and so on.\n\n"
    "---\n\n"
)


def section_header(index: int, rel: str) -> str:
    """Separator line and path line opening the section of ToC entry `index`."""
    return f"----[{index}]\n{rel}\n"


class IgnoreSpec(BaseModel):
    """Patterns read from an ignore file.

    Attributes:
        exclude_patterns: Globs removing files from the scan.
        reinclude_patterns: Globs (without their leading `!`) resurrecting files
            from the unfiltered scan.
    """

    model_config = ConfigDict(frozen=True)

    exclude_patterns: tuple[str, ...] = Field(default=(), description="Exclude globs")
    reinclude_patterns: tuple[str, ...] = Field(default=(), description="Re-include globs")

    @property
    def is_empty(self) -> bool:
        return not self.exclude_patterns and not self.reinclude_patterns


class BinaryMetadata(BaseModel):
    """What is written instead of the content of a binary file."""

    model_config = ConfigDict(frozen=True)

    size: int = Field(..., ge=0, description="File size in bytes")
    modified: datetime = Field(..., description="Last modification time (UTC)")

    @classmethod
    def from_stat(cls, size: int, mtime: float) -> BinaryMetadata:
        return cls(size=size, modified=datetime.fromtimestamp(mtime, UTC))

    @property
    def modified_iso(self) -> str:
        """ISO-8601 UTC timestamp with millisecond precision and a `Z` suffix."""
        return self.modified.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def render(self) -> str:
        return f"[BINARY FILE] Size: {self.size} bytes, Modified: {self.modified_iso}\n"


class AssemblyReport(BaseModel):
    """Outcome of writing the file sections of a document.

    Attributes:
        written: Paths whose section was written (text or binary).
        skipped: Paths left out, or cut short, because they could not be read.
        truncated: Text files cut at the size ceiling.
        binary: Files rendered as metadata only.
    """

    written: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    truncated: list[str] = Field(default_factory=list)
    binary: list[str] = Field(default_factory=list)
