#!/usr/bin/env python3
"""Print the effective transcription service settings. Run from repo root: python scripts/print_settings.py"""
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from transcriber.core.config import settings
from transcriber.transcription.extract import ffmpeg_args
from transcriber.transcription.recognize import recognizer_args


def main():
    """Print directories, tool commands, poll interval and timeout as the service would use them."""
    timeout = f"{settings.tool_timeout_seconds:g} s" if settings.tool_timeout else "none"
    print("Transcription settings")
    print("----------------------")
    print(f"  MEDIA_DIR             = {settings.media_dir}")
    print(f"  METADATA_DIR          = {settings.metadata_dir}")
    print(f"  TRANSCRIPTS_DIR       = {settings.transcripts_dir}")
    print(f"  POLL_INTERVAL_SECONDS = {settings.poll_interval_seconds:g}")
    print(f"  TOOL_TIMEOUT_SECONDS  = {timeout}")
    print(f"  MAX_UPLOAD_MB         = {settings.max_upload_mb}")
    print("")
    print("  extraction:  " + " ".join(ffmpeg_args("<video>", "<audio.wav>", settings.ffmpeg_bin)))
    print("  recognition: " + " ".join(recognizer_args(
        "<scratch>",
        "<audio>",
        runtime=settings.container_runtime,
        image=settings.whisperx_image,
        compute_type=settings.whisperx_compute_type,
    )))
    print("")
    print("Env: see .env.example")


if __name__ == "__main__":
    main()
