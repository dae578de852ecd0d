from pydantic import BaseModel, Field
from typing import List, Optional


class TranscriptSegment(BaseModel):
    """One recognized utterance: start/end offsets in seconds, text, and its index in the recognizer output.
    Why available: Stored in metadata records and in the <filename>.json transcript marker so clients can align text with playback."""

    start: float = Field(..., description="Start offset in seconds")
    end: float = Field(..., description="End offset in seconds")
    text: str = Field("", description="Recognized text (may be empty)")
    segment: int = Field(..., ge=0, description="0-based index in the recognizer output")
    speaker: Optional[str] = Field(None, description="Speaker label, when supplied")
    metadata: Optional[str] = Field(None, description="Free-form tag, when supplied")


class MediaMetadataRecord(BaseModel):
    """Metadata for one uploaded media file. The transcription core only writes transcripts and transcription; the rest is set on upload.
    Why available: Shared shape for the upload path, the integration stage and the metadata read endpoints."""

    id: str
    filename: str
    path: str
    type: str = Field(..., description="audio | video | photo | unknown")
    timestamp: str = Field(..., description="RFC 3339 capture/upload time")
    duration: Optional[float] = None
    labels: List[str] = Field(default_factory=list)
    transcripts: List[TranscriptSegment] = Field(default_factory=list)
    transcription: str = Field("", description="Segment texts, each followed by a single space")


class TranscriptionStatusResponse(BaseModel):
    """One row of GET /api/transcription/status. Why available: Lets clients poll transcription progress for every known file."""

    filename: str
    status: str = Field(..., description="queued | processing | completed | failed")
    error: Optional[str] = None
    timestamp: str


class UploadedFile(BaseModel):
    """Per-file result of POST /api/upload."""

    status: str
    filename: str
    path: str
    metadata: str
    queued: bool = Field(False, description="True if the file was added to the transcription queue")


class UploadResponse(BaseModel):
    """Response for POST /api/upload: overall status, per-file results and count."""

    status: str
    files: List[UploadedFile] = Field(default_factory=list)
    count: int = Field(..., ge=0)
