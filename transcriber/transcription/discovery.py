import logging
import os
from typing import List

from transcriber.transcription.integrate import failed_marker_path, transcript_marker_path
from transcriber.transcription.jobs import JobStore
from transcriber.transcription.media_types import is_transcribable

logger = logging.getLogger(__name__)


def discover_pending(store: JobStore, media_dir: str, transcripts_dir: str) -> List[str]:
    """Enqueue every audio/video file in media_dir that has neither a <f>.json nor a <f>.failed marker. Returns the filenames enqueued.
    Why available: Run once at startup so files whose job was lost with the previous process (crash, restart) are picked up again."""
    try:
        names = sorted(os.listdir(media_dir))
    except OSError as e:
        logger.warning("Failed to read media directory %s: %s", media_dir, e)
        return []

    enqueued: List[str] = []
    for name in names:
        if not os.path.isfile(os.path.join(media_dir, name)):
            continue
        if not is_transcribable(name):
            continue
        if os.path.exists(transcript_marker_path(transcripts_dir, name)):
            continue
        if os.path.exists(failed_marker_path(transcripts_dir, name)):
            continue
        if store.enqueue(name):
            enqueued.append(name)

    if enqueued:
        logger.info("Discovery queued %d untranscribed file(s)", len(enqueued))
    return enqueued
