"""Progress, ETA and cancellation for the per-file analysis loop."""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models import ProgressStats
from ..utils import logger
from .cache import AnalysisCache


@dataclass
class ProgressInfo:
    """Snapshot returned by ``AnalysisProgress.get_progress``."""
    total: int
    completed: int
    percentage: int
    remaining: int
    eta_seconds: Optional[int]
    eta: str
    current_file: Optional[str]
    message: str


@dataclass
class FileResult:
    file: str
    result: Any
    cached: bool = False


@dataclass
class AnalysisRun:
    """Outcome of ``AnalysisProgress.analyze``."""
    results: List[FileResult] = field(default_factory=list)
    cancelled: bool = False
    errors: Dict[str, str] = field(default_factory=dict)
    cache_hits: int = 0


class AnalysisProgress:
    """Tracks analysis progress and drives the cached, cancellable file loop."""

    def __init__(
        self,
        cache: Optional[AnalysisCache] = None,
        clock: Callable[[], float] = time.monotonic,
        window: int = 10,
    ):
        """Initialize the tracker.

        Args:
            cache: Analysis cache consulted before each file
            clock: Monotonic time source in seconds
            window: Number of throughput samples in the rolling average
        """
        self.cache = cache or AnalysisCache()
        self.clock = clock
        self.window = window
        self.stats = ProgressStats()
        self.current_file: Optional[str] = None
        self._cancelled = False
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)

    def on(self, event: str, callback: Callable):
        """Subscribe to ``progress`` or ``cancelled`` events."""
        self._listeners[event].append(callback)

    def _emit(self, event: str, *args):
        for callback in list(self._listeners[event]):
            callback(*args)

    def start(self, total: int):
        """Reset all counters for a new run of ``total`` files."""
        self.stats = ProgressStats(total=total, completed=0, start_time=self.clock(), speeds=[])
        self.current_file = None
        self._cancelled = False

    def update(self, path: str):
        """Record one finished file and sample the current throughput."""
        self.stats.completed += 1
        self.current_file = path

        if self.stats.start_time is not None:
            elapsed = self.clock() - self.stats.start_time
            if elapsed > 0:
                self.stats.speeds.append(self.stats.completed / elapsed)
                if len(self.stats.speeds) > self.window:
                    self.stats.speeds = self.stats.speeds[-self.window:]

        self._emit('progress', self.get_progress())

    def average_speed(self) -> float:
        """Rolling average throughput in files per second."""
        if not self.stats.speeds:
            return 0.0
        return sum(self.stats.speeds) / len(self.stats.speeds)

    def get_progress(self) -> ProgressInfo:
        total = self.stats.total
        completed = self.stats.completed
        remaining = max(0, total - completed)
        percentage = int(completed / total * 100 + 0.5) if total > 0 else 0

        speed = self.average_speed()
        if remaining == 0:
            eta_seconds = 0
        elif speed > 0:
            eta_seconds = int(remaining / speed + 0.5)
        else:
            eta_seconds = None

        eta = self.format_eta(eta_seconds) if eta_seconds is not None else "calculating..."

        return ProgressInfo(
            total=total,
            completed=completed,
            percentage=percentage,
            remaining=remaining,
            eta_seconds=eta_seconds,
            eta=eta,
            current_file=self.current_file,
            message=f"Analyzing {completed}/{total} files ({percentage}%) - ETA {eta}",
        )

    @staticmethod
    def format_eta(seconds: float) -> str:
        """Human-readable ETA: ``45s``, ``3m`` or ``1h 2m``."""
        seconds = max(0, int(seconds + 0.5))
        if seconds < 60:
            return f"{seconds}s"
        if seconds < 3600:
            return f"{int(seconds / 60 + 0.5)}m"
        hours = seconds // 3600
        minutes = int((seconds % 3600) / 60 + 0.5)
        return f"{hours}h {minutes}m"

    def cancel(self):
        """Ask the driving loop to stop before the next file."""
        self._cancelled = True
        self._emit('cancelled')

    def is_cancelled(self) -> bool:
        return self._cancelled

    def analyze(
        self,
        files: Iterable[Any],
        analyzer_fn: Callable[[Any], Any],
        fingerprint: str = "",
    ) -> AnalysisRun:
        """Run ``analyzer_fn`` over files, skipping unchanged ones.

        Cached results only count when they were stored under the same
        ``fingerprint``.

        The cache is persisted at the end even if the run was cancelled.
        An analyzer exception skips that file; the remaining files continue.
        """
        files = list(files)
        run = AnalysisRun()

        self.cache.load()
        self.start(len(files))

        try:
            for file in files:
                if self.is_cancelled():
                    run.cancelled = True
                    logger.info(
                        f"Analysis cancelled after {self.stats.completed}/{self.stats.total} files"
                    )
                    break

                path = file.path
                result = self.cache.get_cached(path, file.content, fingerprint)
                if result is not None:
                    run.cache_hits += 1
                    run.results.append(FileResult(file=path, result=result, cached=True))
                else:
                    try:
                        result = analyzer_fn(file)
                    except Exception as e:
                        logger.warning(f"Error analyzing {path}: {e}")
                        run.errors[path] = str(e)
                    else:
                        self.cache.set_cached(path, file.content, result, fingerprint)
                        run.results.append(FileResult(file=path, result=result))

                self.update(path)
        finally:
            self.cache.save()

        return run
