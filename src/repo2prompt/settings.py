from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import tomlkit
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from repo2prompt.config import (
    DEFAULT_IGNORE_FILE,
    DEFAULT_MAX_SIZE,
    DEFAULT_OUTPUT_FILE,
    PROJECT_CONFIG_FILES,
)
from repo2prompt.exceptions import ConfigFileError
from repo2prompt.logging import logger


class Settings(BaseModel):
    """Command-line settings; unset values fall back to the project config."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default=Path(), description="Repository path.")
    config: Path | None = Field(default=None, description="Explicit config file.")
    preamble: Path | None = Field(default=None, description="Preamble file.")
    output: Path | None = Field(default=None, description="Output file.")
    ignore: str | None = Field(default=None, description="Name of the ignore file.")
    max_size: int = Field(
        default=DEFAULT_MAX_SIZE,
        ge=0,
        description="Max size (in bytes) of a text file before truncation.",
    )
    debug: bool = Field(default=False, description="Detailed logs.")
    progress: bool = Field(default=True, description="Show the progress bar.")
    log_file: str = Field(default="", description="Log file path.")


class ProjectConfig(BaseModel):
    """Options read from a config file or a project manifest."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    ignore_file: str | None = Field(default=None, alias="ignoreFile")
    preamble: str | None = None
    output: str | None = None
    show_progress: bool | None = Field(default=None, alias="showProgress")
    max_size: int | None = Field(default=None, ge=0, alias="maxSize")


class RunConfig(BaseModel):
    """Effective options of one run, after precedence has been applied."""

    model_config = ConfigDict(frozen=True)

    repo: Path
    ignore_file: str
    ignore_path: Path
    preamble: Path | None
    output: Path
    show_progress: bool
    max_size: int
    debug: bool


def _parse_config_text(path: Path, text: str) -> Any:  # noqa: ANN401
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def read_config_file(path: Path) -> ProjectConfig:
    """Read a JSON (or YAML, by suffix) config file.

    Args:
        path (Path): the config file

    Raises:
        ConfigFileError: if the file cannot be read, parsed or validated.

    Returns:
        ProjectConfig: the validated options
    """
    try:
        data = _parse_config_text(path, path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigFileError(file=path, reason=str(e)) from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigFileError(file=path, reason="the top level must be an object")
    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigFileError(file=path, reason=str(e)) from e


def read_manifest_config(repo: Path) -> ProjectConfig | None:
    """Look for embedded options in the project manifests of `repo`.

    `[tool.repo2prompt]` in `pyproject.toml` is checked first, then a
    `"repo2prompt"` object in `package.json`. Manifests that do not parse are
    skipped, since they belong to the project rather than to this tool.

    Args:
        repo (Path): the repository root

    Raises:
        ConfigFileError: if an embedded section exists but holds invalid options.

    Returns:
        ProjectConfig | None: the embedded options, or None if there are none
    """
    pyproject = repo / "pyproject.toml"
    if pyproject.is_file():
        try:
            doc = tomlkit.parse(pyproject.read_text(encoding="utf-8")).unwrap()
        except (OSError, UnicodeDecodeError, TOMLKitError) as e:
            logger.debug("Ignoring unreadable pyproject.toml: %s", e)
        else:
            section = doc.get("tool", {}).get("repo2prompt")
            if isinstance(section, dict):
                logger.debug("Reading [tool.repo2prompt] from pyproject.toml.")
                try:
                    return ProjectConfig.model_validate(section)
                except ValidationError as e:
                    raise ConfigFileError(file=pyproject, reason=str(e)) from e

    package_json = repo / "package.json"
    if package_json.is_file():
        try:
            pkg = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug("Ignoring unreadable package.json: %s", e)
        else:
            section = pkg.get("repo2prompt") if isinstance(pkg, dict) else None
            if isinstance(section, dict):
                logger.debug('Reading "repo2prompt" field from package.json.')
                try:
                    return ProjectConfig.model_validate(section)
                except ValidationError as e:
                    raise ConfigFileError(file=package_json, reason=str(e)) from e
    return None


def load_project_config(repo: Path, explicit: Path | None = None) -> ProjectConfig:
    """Load options with the precedence: explicit file, project file, manifest, defaults.

    Args:
        repo (Path): the repository root
        explicit (Path | None): a config file given on the command line

    Raises:
        ConfigFileError: if the explicit or project-local config file is unusable.

    Returns:
        ProjectConfig: the first options found, or an empty config
    """
    if explicit is not None:
        logger.debug("Reading explicit config: %s", explicit)
        return read_config_file(explicit)

    for name in PROJECT_CONFIG_FILES:
        candidate = repo / name
        if candidate.is_file():
            logger.debug("Found %s at repository root.", name)
            return read_config_file(candidate)

    manifest = read_manifest_config(repo)
    if manifest is not None:
        return manifest

    logger.debug("No config found. Using default or CLI values.")
    return ProjectConfig()


def resolve_run_config(settings: Settings, project: ProjectConfig, cwd: Path) -> RunConfig:
    """Merge command-line settings, project options and defaults.

    Command-line paths are relative to `cwd`; a preamble named in the project
    config is relative to the repository root.

    Args:
        settings (Settings): the parsed command line
        project (ProjectConfig): options found by `load_project_config`
        cwd (Path): the working directory of the invocation

    Returns:
        RunConfig: the effective options
    """
    repo = (cwd / settings.repo).resolve()
    ignore_file = settings.ignore or project.ignore_file or DEFAULT_IGNORE_FILE

    if settings.preamble is not None:
        preamble: Path | None = (cwd / settings.preamble).resolve()
    elif project.preamble:
        preamble = (repo / project.preamble).resolve()
    else:
        preamble = None

    if settings.output is not None:
        output = cwd / settings.output
    else:
        output = cwd / (project.output or DEFAULT_OUTPUT_FILE)

    max_size = settings.max_size
    if "max_size" not in settings.model_fields_set and project.max_size is not None:
        max_size = project.max_size

    show_progress = settings.progress
    if show_progress and project.show_progress is not None:
        show_progress = project.show_progress
    if settings.debug:
        show_progress = False

    return RunConfig(
        repo=repo,
        ignore_file=ignore_file,
        ignore_path=repo / ignore_file,
        preamble=preamble,
        output=output.resolve(),
        show_progress=show_progress,
        max_size=max_size,
        debug=settings.debug,
    )
