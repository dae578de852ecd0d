from datetime import datetime, timezone
from typing import List

from transcriber.models.schemas import TranscriptionStatusResponse
from transcriber.transcription.jobs import JobStore


def _rfc3339(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="seconds")


def transcription_statuses(store: JobStore) -> List[TranscriptionStatusResponse]:
    """Status rows for every filename the store knows, in snapshot order. Read-only; never waits on the worker."""
    return [
        TranscriptionStatusResponse(
            filename=s.filename,
            status=s.state.value,
            error=s.error,
            timestamp=_rfc3339(s.last_updated),
        )
        for s in store.snapshot_all()
    ]
