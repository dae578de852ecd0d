from enum import Enum
from pathlib import Path


class MediaKind(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    PHOTO = "photo"
    UNSUPPORTED = "unknown"


AUDIO_EXTENSIONS = {".mp3", ".wav"}
VIDEO_EXTENSIONS = {".mp4", ".mov"}
PHOTO_EXTENSIONS = {".jpg", ".jpeg"}


def classify(filename: str) -> MediaKind:
    """Map a filename to its media kind by lowercase extension.
    Why available: Upload uses it to fill the record type; the pipeline and discovery scan use it to decide what to transcribe."""
    ext = Path(filename).suffix.lower()
    if ext in AUDIO_EXTENSIONS:
        return MediaKind.AUDIO
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if ext in PHOTO_EXTENSIONS:
        return MediaKind.PHOTO
    return MediaKind.UNSUPPORTED


def is_transcribable(filename: str) -> bool:
    """True for audio and video files."""
    return classify(filename) in (MediaKind.AUDIO, MediaKind.VIDEO)
