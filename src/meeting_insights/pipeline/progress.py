"""
Batch progress accounting.

ExtractionProgress is the counter set reported to callers. ProgressTracker
owns the live instance for one batch run and is the only writer: workers
report outcomes through it, and every update happens under one lock so
concurrent completions are never lost or double counted.
"""

import asyncio
from copy import deepcopy
from dataclasses import asdict, dataclass, field
from typing import Any, Callable

from ..errors import InvariantViolationError
from ..logging import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[['ExtractionProgress'], None]


@dataclass
class ExtractionProgress:
    """
    Counters for one batch run.

    ``completed == success + failed`` and ``pending == total - completed``
    hold after every update. ``retried`` counts meetings that needed a
    second attempt, whatever its outcome. ``persistence_errors`` counts
    meetings whose result could not be written; they are also in ``failed``.
    """

    total: int = 0
    completed: int = 0
    success: int = 0
    failed: int = 0
    pending: int = 0
    retried: int = 0
    persistence_errors: int = 0
    cancelled: bool = False
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


class ProgressTracker:
    """Lock-guarded writer of an ExtractionProgress."""

    def __init__(self, total: int, on_progress: ProgressCallback | None = None):
        self._progress = ExtractionProgress(total=total, pending=total)
        self._lock = asyncio.Lock()
        self._finished: set[str] = set()
        self._retried: set[str] = set()
        self._on_progress = on_progress

    def snapshot(self) -> ExtractionProgress:
        """Independent copy of the current counters."""
        return deepcopy(self._progress)

    def _notify(self) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(self.snapshot())
        except Exception:
            logger.exception('progress.callback_failed')

    def _finish(self, meeting_id: str) -> None:
        if meeting_id in self._finished:
            raise InvariantViolationError(
                'Meeting outcome recorded twice',
                context={'meeting_id': meeting_id},
            )
        self._finished.add(meeting_id)
        self._progress.completed += 1
        self._progress.pending = self._progress.total - self._progress.completed

    async def record_retry(self, meeting_id: str) -> None:
        """A meeting is about to be attempted again."""
        async with self._lock:
            if meeting_id not in self._retried:
                self._retried.add(meeting_id)
                self._progress.retried += 1
            self._notify()

    async def record_success(self, meeting_id: str) -> None:
        async with self._lock:
            self._finish(meeting_id)
            self._progress.success += 1
            self._notify()

    async def record_failure(
        self,
        meeting_id: str,
        reason: str,
        persistence: bool = False,
    ) -> None:
        """
        A meeting ended FAILED.

        Args:
            meeting_id: Meeting that failed
            reason: Human-readable failure reason
            persistence: True if the failure was writing the result
        """
        async with self._lock:
            self._finish(meeting_id)
            self._progress.failed += 1
            if persistence:
                self._progress.persistence_errors += 1
            self._progress.errors.append({'meeting_id': meeting_id, 'error': reason})
            self._notify()

    async def mark_cancelled(self) -> None:
        async with self._lock:
            self._progress.cancelled = True
            self._notify()
