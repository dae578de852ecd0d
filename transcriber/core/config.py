import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

load_dotenv()

_DATA_DIR = os.getenv("DATA_DIR", "./data")


class Settings(BaseModel):
    """Service settings loaded from environment: data directories, external tool commands, worker poll interval, tool timeout and upload limit.
    Why available: Single source of configuration so the API, the discovery scan and the worker all agree on where media, metadata and transcripts live."""
    model_config = ConfigDict(validate_default=True)

    data_dir: str = _DATA_DIR
    media_dir: str = os.getenv("MEDIA_DIR", os.path.join(_DATA_DIR, "media"))
    metadata_dir: str = os.getenv("METADATA_DIR", os.path.join(_DATA_DIR, "metadata"))
    transcripts_dir: str = os.getenv("TRANSCRIPTS_DIR", os.path.join(_DATA_DIR, "transcripts"))
    poll_interval_seconds: float = float(os.getenv("POLL_INTERVAL_SECONDS", "5"))
    ffmpeg_bin: str = os.getenv("FFMPEG_BIN", "ffmpeg")
    container_runtime: str = os.getenv("CONTAINER_RUNTIME", "podman")
    whisperx_image: str = os.getenv("WHISPERX_IMAGE", "ghcr.io/jim60105/whisperx:base-en")
    whisperx_compute_type: str = os.getenv("WHISPERX_COMPUTE_TYPE", "int8")
    tool_timeout_seconds: float = float(os.getenv("TOOL_TIMEOUT_SECONDS", "3600"))  # 0 = wait forever
    max_upload_mb: int = int(os.getenv("MAX_UPLOAD_MB", "50"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @field_validator("poll_interval_seconds", "max_upload_mb")
    @classmethod
    def must_be_positive(cls, v):
        """Reject zero or negative poll interval and upload limit coming from env."""
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("tool_timeout_seconds")
    @classmethod
    def must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @property
    def tool_timeout(self) -> Optional[float]:
        """Timeout passed to subprocess calls; None when TOOL_TIMEOUT_SECONDS is 0."""
        return self.tool_timeout_seconds or None

    def ensure_directories(self) -> None:
        """Create media, metadata and transcripts directories if missing. Called once at startup."""
        for path in (self.data_dir, self.media_dir, self.metadata_dir, self.transcripts_dir):
            os.makedirs(path, exist_ok=True)


settings = Settings()
