"""
Cooperative cancellation and run status for long-running computations.
"""

import threading
from enum import Enum, auto
from typing import Callable, Optional

ProgressCallback = Optional[Callable[[float], None]]


class RunStatus(Enum):
    """
    Outcome of a long-running computation.

    Attributes
    ----------
    COMPLETED : auto
        All work finished.
    CANCELLED : auto
        A cancellation request stopped the work early.
    """

    COMPLETED = auto()
    CANCELLED = auto()


class CancellationToken:
    """
    Thread-safe cancellation flag checked between units of work.

    Wraps a :class:`threading.Event` so it can be shared with worker threads.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def reset(self) -> None:
        """Clear a previous request so the token can be reused."""
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self.cancelled


def report_progress(progress: ProgressCallback, fraction: float) -> None:
    """Call the progress callback, if any, with a value clamped to ``[0, 1]``."""
    if progress is not None:
        progress(min(1.0, max(0.0, fraction)))
