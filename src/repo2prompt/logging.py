from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_CONFIGURED_WITH: tuple[str, bool] | None = None


def setup_logging(filename: str | Path | None = None, *, debug: bool = False) -> structlog.BoundLogger:
    """Set up structured logging for the repo2prompt package.

    Calling it again with different arguments reconfigures the handlers, so the
    CLI can switch to a log file or to debug level after the import-time setup.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        debug: Lower the level from INFO to DEBUG.

    Returns:
        A structlog logger instance configured for the repo2prompt package.
    """
    global _CONFIGURED_WITH  # noqa: PLW0603
    wanted = (str(filename or ""), debug)
    if _CONFIGURED_WITH != wanted:
        level = logging.DEBUG if debug else logging.INFO
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=level,
            handlers=handlers,
            format="%(message)s",
            force=True,
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _CONFIGURED_WITH = wanted

    return structlog.get_logger("repo2prompt")


logger = setup_logging()
