import json
import logging
import os
from typing import List

from transcriber.metadata.records import MetadataStore, RecordFormatError
from transcriber.models.schemas import TranscriptSegment
from transcriber.transcription.errors import PersistenceError

logger = logging.getLogger(__name__)

TRANSCRIPT_SUFFIX = ".json"
FAILED_SUFFIX = ".failed"


def transcript_marker_path(transcripts_dir: str, filename: str) -> str:
    return os.path.join(transcripts_dir, filename + TRANSCRIPT_SUFFIX)


def failed_marker_path(transcripts_dir: str, filename: str) -> str:
    return os.path.join(transcripts_dir, filename + FAILED_SUFFIX)


def build_transcription(segments: List[TranscriptSegment]) -> str:
    """Full-text transcription: every segment text followed by one space, in segment order."""
    return "".join(s.text + " " for s in segments)


def write_transcript_marker(transcripts_dir: str, filename: str, segments: List[TranscriptSegment]) -> str:
    """Write <filename>.json: the ordered segment list. Its presence tells the discovery scan the file is done."""
    os.makedirs(transcripts_dir, exist_ok=True)
    path = transcript_marker_path(transcripts_dir, filename)
    payload = [s.model_dump(exclude_none=True) for s in segments]
    tmp = path + ".tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)
    return path


def integrate(
    filename: str,
    segments: List[TranscriptSegment],
    store: MetadataStore,
    transcripts_dir: str,
) -> None:
    """Replace the record's transcripts and transcription with the recognized segments, save the whole record, then write the transcript marker.

    Raises:
        PersistenceError: record missing, unreadable, or any write failed.
    """
    try:
        record = store.load(filename)
    except (OSError, RecordFormatError) as e:
        raise PersistenceError(f"failed to read metadata file: {e}") from e
    if record is None:
        raise PersistenceError(f"metadata record not found for {filename}")

    record.transcripts = list(segments)
    record.transcription = build_transcription(segments)

    try:
        store.save(record)
    except OSError as e:
        raise PersistenceError(f"failed to write updated metadata: {e}") from e

    try:
        write_transcript_marker(transcripts_dir, filename, segments)
    except OSError as e:
        raise PersistenceError(f"failed to write transcript file: {e}") from e
    logger.info("Stored %d transcript segment(s) for %s", len(segments), filename)
