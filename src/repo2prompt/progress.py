from __future__ import annotations

import sys
from typing import Protocol

from tqdm import tqdm


class ProgressObserver(Protocol):
    """Receives one `increment` per processed file and a final `stop`."""

    def increment(self) -> None: ...

    def stop(self) -> None: ...


class NullProgress:
    """Progress observer used when the bar is disabled."""

    def increment(self) -> None:
        pass

    def stop(self) -> None:
        pass


class TqdmProgress:
    """Progress bar on stderr, one unit per file."""

    def __init__(self, total: int) -> None:
        self._bar = tqdm(
            total=total,
            desc="Processing files",
            unit="files",
            file=sys.stderr,
        )

    def increment(self) -> None:
        self._bar.update(1)

    def stop(self) -> None:
        self._bar.close()


def make_progress(*, enabled: bool, total: int) -> ProgressObserver:
    """Build the progress observer for a run of `total` files."""
    if not enabled:
        return NullProgress()
    return TqdmProgress(total)
