# /// script
# requires-python = ">=3.13"
# dependencies = [
#     "pydantic",
#     "pyyaml",
#     "structlog",
#     "tomlkit",
#     "tqdm",
# ]
# ///
"""
repo2prompt: render a repository as a single text file for an LLM.

Overview
--------
The document starts with a preamble explaining its layout, then a numbered
table of contents, then one section per file:

    ----[N]
    relative/path/to/file
    <content, possibly cut with [TRUNCATED], or binary metadata>

and ends with a `--END--` line.

Files are selected by walking the repository (VCS and dependency directories
are skipped) and filtering with the globs of an ignore file
(`.repo2promptignore` by default). Lines starting with `!` re-include files
that another pattern excluded.

Options can also come from `--config`, from `.repo2prompt.json` /
`.repo2prompt.yaml` at the repository root, or from `[tool.repo2prompt]` in
`pyproject.toml` (or a `"repo2prompt"` field in `package.json`). Command-line
values always win.

Usage
-----
Run `repo2prompt --help` for full options. Common examples:
    - Current directory into output.txt:
        repo2prompt

    - Another repository, 200 kB per file, custom preamble:
        repo2prompt ../project -o project.txt -m 200000 -p prompt.md

    - Debug logs into a file:
        repo2prompt --debug --log-file repo2prompt.log
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from repo2prompt import __version__
from repo2prompt.config import DEFAULT_OUTPUT_FILE, IgnoreSpec, PathConvention
from repo2prompt.exceptions import (
    IgnoreFileError,
    OutputSinkError,
    Repo2PromptError,
    RepositoryNotFoundError,
)
from repo2prompt.file_manipulation import reserved_paths, resolve_file_set
from repo2prompt.ignore_spec import load_ignore_spec
from repo2prompt.logging import logger, setup_logging
from repo2prompt.output_construction import load_preamble, write_document
from repo2prompt.progress import make_progress
from repo2prompt.settings import RunConfig, Settings, load_project_config, resolve_run_config

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    p = argparse.ArgumentParser(
        prog="repo2prompt",
        description="Transforms a repository into a text file for LLM.",
    )
    p.add_argument("repo", nargs="?", default=None, help="Repository path (default: current directory).")
    p.add_argument("-c", "--config", type=Path, default=None, help="Path to a JSON or YAML config file.")
    p.add_argument("-p", "--preamble", type=Path, default=None, help="Preamble file (replaces the default).")
    p.add_argument("-o", "--output", type=Path, default=None, help='Output file (default: "output.txt").')
    p.add_argument("-i", "--ignore", type=str, default=None, help='Ignore file name (default: ".repo2promptignore").')
    p.add_argument(
        "-m",
        "--max-size",
        type=int,
        default=None,
        help="Max size (in bytes) of a text file before truncation (default: 1048576).",
    )
    p.add_argument("-d", "--debug", action="store_true", default=None, help="Debug mode (detailed logs).")
    p.add_argument("--no-progress", dest="progress", action="store_false", default=None, help="Disable the progress bar.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command-line arguments into `Settings`.

    Only the options actually given are set, so the project config can fill in
    the others.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    given = {k: v for k, v in vars(args).items() if v is not None}
    try:
        return Settings(**given)
    except ValidationError as e:
        parser.error(str(e))


def check_repository(repo: Path) -> None:
    """Make sure the repository path is an existing directory.

    Raises:
        RepositoryNotFoundError: if `repo` is missing or not a directory.
    """
    if not repo.is_dir():
        raise RepositoryNotFoundError(folder=repo)


def read_ignore_spec(run: RunConfig, convention: PathConvention) -> IgnoreSpec:
    """Load the ignore file of the run, or an empty spec if there is none.

    Raises:
        IgnoreFileError: if the ignore file exists but cannot be read.
    """
    if not run.ignore_path.is_file():
        logger.debug("No ignore file found (expected path: %s).", run.ignore_path)
        return IgnoreSpec()
    try:
        return load_ignore_spec(run.ignore_path, convention)
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreFileError(file=run.ignore_path, reason=str(e)) from e


def run(settings: Settings, *, cwd: Path, convention: PathConvention) -> Path:
    """Produce the document described by `settings`.

    Args:
        settings (Settings): the parsed command line
        cwd (Path): the working directory command-line paths are relative to
        convention (PathConvention): separator convention of the host

    Raises:
        Repo2PromptError: on any fatal condition.

    Returns:
        Path: the written output file
    """
    repo = (cwd / settings.repo).resolve()
    logger.debug("Resolving repository: %s", repo)
    check_repository(repo)

    project = load_project_config(repo, (cwd / settings.config) if settings.config else None)
    run_config = resolve_run_config(settings, project, cwd)

    spec = read_ignore_spec(run_config, convention)
    reserved = reserved_paths(
        run_config.repo,
        run_config.ignore_file,
        settings.output or project.output or DEFAULT_OUTPUT_FILE,
        run_config.output,
        settings.preamble or project.preamble,
        run_config.preamble,
        convention=convention,
    )
    files = resolve_file_set(run_config.repo, spec, reserved=reserved, convention=convention)
    preamble = load_preamble(run_config.preamble)

    try:
        sink = run_config.output.open("wb")
    except OSError as e:
        raise OutputSinkError(file=run_config.output, reason=str(e)) from e
    logger.debug("Output file ready: %s", run_config.output)

    progress = make_progress(enabled=run_config.show_progress, total=len(files))
    with sink:
        report = write_document(
            sink,
            run_config.repo,
            files,
            preamble=preamble,
            max_size=run_config.max_size,
            progress=progress,
        )
    logger.info(
        "Document written",
        output=str(run_config.output),
        files=len(files),
        written=len(report.written),
        skipped=len(report.skipped),
        truncated=len(report.truncated),
        binary=len(report.binary),
    )
    return run_config.output


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point of the `repo2prompt` command.

    Returns:
        int: 0 on success, 1 on any fatal error (reported on stderr)
    """
    settings = parse_args(argv)
    setup_logging(settings.log_file or None, debug=settings.debug)

    try:
        output = run(settings, cwd=Path.cwd(), convention=PathConvention.from_os_name(os.name))
    except Repo2PromptError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:  # noqa: BLE001
        print("Unexpected error while writing the repository content:", file=sys.stderr)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Repository content written to: {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
