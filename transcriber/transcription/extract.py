"""
Audio extraction for video inputs: demux the audio track with ffmpeg and resample it to mono 16 kHz signed 16-bit PCM WAV,
which is what the recognizer expects.
"""
import logging
import os
from typing import List, Optional

from transcriber.transcription.errors import ToolError
from transcriber.utils.process import ProcessRunner, ProcessTimeout, run_command

logger = logging.getLogger(__name__)

TARGET_SAMPLE_RATE = 16_000


def ffmpeg_args(video_path: str, audio_path: str, ffmpeg_bin: str = "ffmpeg") -> List[str]:
    return [
        ffmpeg_bin,
        "-y",
        "-i",
        video_path,
        "-vn",
        "-acodec",
        "pcm_s16le",
        "-ar",
        str(TARGET_SAMPLE_RATE),
        "-ac",
        "1",
        audio_path,
    ]


def extract_audio(
    video_path: str,
    audio_path: str,
    *,
    runner: ProcessRunner = run_command,
    ffmpeg_bin: str = "ffmpeg",
    timeout: Optional[float] = None,
) -> str:
    """Write the audio track of video_path to audio_path as mono 16 kHz PCM WAV. Returns audio_path.

    Raises:
        ToolError: ffmpeg could not start, timed out, or exited non-zero (message carries its output).
    """
    args = ffmpeg_args(video_path, audio_path, ffmpeg_bin)
    logger.info("Extracting audio from %s", os.path.basename(video_path))
    try:
        result = runner(args, timeout)
    except ProcessTimeout as e:
        raise ToolError(f"ffmpeg error: {e}, output: {e.output.strip()}") from e
    except OSError as e:
        raise ToolError(f"ffmpeg error: {e}") from e
    if result.returncode != 0:
        raise ToolError(f"ffmpeg error: exit status {result.returncode}, output: {result.output.strip()}")
    return audio_path


def cleanup_audio(path: Optional[str]) -> None:
    """Remove an extracted audio file. Failure is logged, never raised."""
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError as e:
        logger.warning("Failed to remove temporary audio file %s: %s", path, e)
