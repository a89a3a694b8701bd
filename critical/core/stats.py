import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field

ProgressCallback = Callable[[str], None]


def _discard(message: str) -> None:
    return None


@dataclass
class ProgressTracker:
    """
    Progress channel for a single build.

    Wraps the textual callback and owns the completion counter shared by
    concurrent enrichment tasks.
    """
    callback: ProgressCallback = _discard
    total: int = 0
    completed: int = 0
    start_time: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def emit(self, message: str) -> None:
        self.callback(message)

    def advance(self, count: int = 1) -> int:
        with self._lock:
            self.completed += count
            completed = self.completed
        return completed

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time
