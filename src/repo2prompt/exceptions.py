from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Repo2PromptError(Exception):
    """Base exception for errors in the repo2prompt package."""

    def __str__(self) -> str:
        message = getattr(self, "message", self.__class__.__name__)
        subject = next(
            (getattr(self, name) for name in ("file", "folder", "pattern") if hasattr(self, name)),
            None,
        )
        text = f'{message} ("{subject}")' if subject is not None else message
        reason = getattr(self, "reason", "")
        return f"{text} {reason}" if reason else text


@dataclass(frozen=True)
class RepositoryNotFoundError(Repo2PromptError):
    """Raised when the repository path is missing or is not a directory."""

    folder: Path
    message: str = "The repository path does not exist or is not a directory."


@dataclass(frozen=True)
class ConfigFileError(Repo2PromptError):
    """Raised when a configuration file cannot be read, parsed or validated."""

    file: Path
    reason: str = ""
    message: str = "Unable to read the configuration file."


@dataclass(frozen=True)
class IgnoreFileError(Repo2PromptError):
    """Raised when an existing ignore file cannot be read."""

    file: Path
    reason: str = ""
    message: str = "Unable to read the ignore file."


@dataclass(frozen=True)
class PreambleError(Repo2PromptError):
    """Raised when a configured preamble file cannot be read."""

    file: Path
    reason: str = ""
    message: str = "Unable to read the preamble file."


@dataclass(frozen=True)
class OutputSinkError(Repo2PromptError):
    """Raised when the output file cannot be opened for writing."""

    file: Path
    reason: str = ""
    message: str = "Unable to open the output file for writing."


@dataclass(frozen=True)
class InvalidPatternError(Repo2PromptError):
    """Raised when an ignore pattern cannot be turned into a matcher."""

    pattern: str
    reason: str = ""
    message: str = "Invalid glob pattern."
