import logging
import os
import threading
from typing import Optional

from transcriber.transcription.integrate import failed_marker_path
from transcriber.transcription.jobs import JobStore
from transcriber.transcription.pipeline import TranscriptionPipeline

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 5.0


class TranscriptionWorker:
    """Single background consumer of the JobStore. Processes one file at a time; sleeps poll_interval only when the queue is empty.
    Why available: Keeps transcription off the upload request path; a failing job is recorded and the loop moves on."""

    def __init__(
        self,
        store: JobStore,
        pipeline: TranscriptionPipeline,
        transcripts_dir: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ):
        self.store = store
        self.pipeline = pipeline
        self.transcripts_dir = transcripts_dir
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> bool:
        """Process the next queued file, if any. Returns False when the queue was empty."""
        filename = self.store.dequeue()
        if filename is None:
            return False

        logger.info("Processing transcription for %s", filename)
        try:
            self.pipeline.run(filename)
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error("Transcription failed for %s: %s", filename, message)
            self.store.mark_failed(filename, message)
            self._write_failed_marker(filename, message)
        else:
            logger.info("Transcription completed for %s", filename)
            self.store.mark_completed(filename)
        return True

    def _write_failed_marker(self, filename: str, message: str) -> None:
        path = failed_marker_path(self.transcripts_dir, filename)
        try:
            os.makedirs(self.transcripts_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(message)
        except OSError as e:
            logger.error("Failed to write failure file for %s: %s", filename, e)

    def run_forever(self) -> None:
        while not self._stop.is_set():
            if not self.run_once():
                self._stop.wait(self.poll_interval)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="transcription-worker", daemon=True)
        self._thread.start()
        logger.info("Transcription worker started (poll every %gs)", self.poll_interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the loop to exit and wait for it. A job already running finishes first.
        If it outlives timeout the thread is kept, so running stays True until the job ends."""
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Transcription worker still busy after %ss; current job will finish in the background", timeout)
            return
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
