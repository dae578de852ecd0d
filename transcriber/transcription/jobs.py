"""In-memory transcription job store: FIFO queue, in-process set, completed and failed maps, all guarded by one lock."""
import logging
import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobStatus:
    """Snapshot of one filename's job: state, error (failed only) and time of the last transition.
    Why available: Returned by snapshot_all so the status endpoint never touches the live collections."""

    filename: str
    state: JobState
    last_updated: float
    error: Optional[str] = None


class JobStore:
    """Thread-safe record of every filename's transcription state for this process lifetime.

    A filename lives in exactly one of queue / in-process / completed / failed once known.
    Terminal state is not persisted here; marker files in the transcripts directory carry it across restarts.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._queue: Deque[str] = deque()
        self._queued_at: Dict[str, float] = {}
        self._in_process: "OrderedDict[str, float]" = OrderedDict()
        self._completed: "OrderedDict[str, float]" = OrderedDict()
        self._failed: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()

    def _is_known(self, filename: str) -> bool:
        return (
            filename in self._queued_at
            or filename in self._in_process
            or filename in self._completed
            or filename in self._failed
        )

    def enqueue(self, filename: str) -> bool:
        """Append filename to the back of the queue. Returns False (no-op) if it is already queued, in process, completed or failed."""
        with self._lock:
            if self._is_known(filename):
                return False
            self._queue.append(filename)
            self._queued_at[filename] = self._clock()
        logger.info("Added %s to transcription queue", filename)
        return True

    def dequeue(self) -> Optional[str]:
        """Pop the front of the queue and mark it in process. Returns None when nothing is queued; never blocks."""
        with self._lock:
            if not self._queue:
                return None
            filename = self._queue.popleft()
            del self._queued_at[filename]
            self._in_process[filename] = self._clock()
            return filename

    def mark_completed(self, filename: str) -> None:
        with self._lock:
            if self._in_process.pop(filename, None) is None:
                logger.warning("mark_completed ignored for %s: not in process", filename)
                return
            self._completed[filename] = self._clock()

    def mark_failed(self, filename: str, error: str) -> None:
        with self._lock:
            if self._in_process.pop(filename, None) is None:
                logger.warning("mark_failed ignored for %s: not in process", filename)
                return
            self._failed[filename] = (error, self._clock())

    def state_of(self, filename: str) -> Optional[JobState]:
        """Current state of filename, or None if this process has never seen it."""
        with self._lock:
            if filename in self._queued_at:
                return JobState.QUEUED
            if filename in self._in_process:
                return JobState.PROCESSING
            if filename in self._completed:
                return JobState.COMPLETED
            if filename in self._failed:
                return JobState.FAILED
            return None

    def queued_count(self) -> int:
        with self._lock:
            return len(self._queue)

    def snapshot_all(self) -> List[JobStatus]:
        """One status per known filename: queued (FIFO order), then processing, completed, failed.
        Computed under the mutation lock so a filename never shows up twice or not at all mid-transition."""
        with self._lock:
            out: List[JobStatus] = [
                JobStatus(filename=f, state=JobState.QUEUED, last_updated=self._queued_at[f])
                for f in self._queue
            ]
            out.extend(
                JobStatus(filename=f, state=JobState.PROCESSING, last_updated=ts)
                for f, ts in self._in_process.items()
            )
            out.extend(
                JobStatus(filename=f, state=JobState.COMPLETED, last_updated=ts)
                for f, ts in self._completed.items()
            )
            out.extend(
                JobStatus(filename=f, state=JobState.FAILED, last_updated=ts, error=err)
                for f, (err, ts) in self._failed.items()
            )
            return out

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue) + len(self._in_process) + len(self._completed) + len(self._failed)
