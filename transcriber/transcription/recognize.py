"""
Speech recognition via WhisperX running in a container.

The audio is staged into a fresh scratch directory mounted at /app; the recognizer writes a JSON document next to it.
Only segments[].{start, end, text} is read from that document.
"""
import json
import logging
import math
import os
import shutil
import tempfile
from typing import Any, List, Optional

from transcriber.models.schemas import TranscriptSegment
from transcriber.transcription.errors import FormatError, ToolError
from transcriber.utils.process import ProcessRunner, ProcessTimeout, run_command

logger = logging.getLogger(__name__)

CONTAINER_WORKDIR = "/app"


def recognizer_args(
    scratch_dir: str,
    audio_name: str,
    *,
    runtime: str = "podman",
    image: str = "ghcr.io/jim60105/whisperx:base-en",
    compute_type: str = "int8",
) -> List[str]:
    return [
        runtime,
        "run",
        "--rm",
        "-v",
        f"{scratch_dir}:{CONTAINER_WORKDIR}:Z",
        image,
        "--",
        "--output_format",
        "json",
        "--compute_type",
        compute_type,
        audio_name,
    ]


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def parse_segments(data: Any) -> List[TranscriptSegment]:
    """Decode recognizer output into TranscriptSegments, keeping each element's original index.

    A malformed element (not an object, non-numeric or non-finite start/end, non-string text, end before start) is dropped.
    A document that is not an object or has no segments list raises FormatError.
    """
    if not isinstance(data, dict):
        raise FormatError("invalid whisperx output format: top level is not an object")
    raw = data.get("segments")
    if not isinstance(raw, list):
        raise FormatError("invalid whisperx output format: missing segments array")

    segments: List[TranscriptSegment] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            logger.debug("dropping segment %d: not an object", i)
            continue
        start, end, text = item.get("start"), item.get("end"), item.get("text")
        if not _is_number(start) or not _is_number(end) or not isinstance(text, str):
            logger.debug("dropping segment %d: bad start/end/text", i)
            continue
        if end < start:
            logger.debug("dropping segment %d: end %.3f before start %.3f", i, end, start)
            continue
        segments.append(TranscriptSegment(start=float(start), end=float(end), text=text, segment=i))

    if len(segments) < len(raw):
        logger.info("Dropped %d malformed segment(s) of %d", len(raw) - len(segments), len(raw))
    return segments


def find_json_output(directory: str) -> Optional[str]:
    """First *.json file in directory (sorted by name), or None."""
    for name in sorted(os.listdir(directory)):
        if name.lower().endswith(".json") and os.path.isfile(os.path.join(directory, name)):
            return os.path.join(directory, name)
    return None


def recognize(
    audio_path: str,
    *,
    runner: ProcessRunner = run_command,
    runtime: str = "podman",
    image: str = "ghcr.io/jim60105/whisperx:base-en",
    compute_type: str = "int8",
    timeout: Optional[float] = None,
) -> List[TranscriptSegment]:
    """Run the recognizer container against audio_path and return its segments.
    The scratch directory is removed on every exit path.

    Raises:
        ToolError: staging failed, the container failed or timed out, or no JSON file was produced.
        FormatError: the JSON file is not valid JSON or has no segments array.
    """
    with tempfile.TemporaryDirectory(prefix="whisperx") as scratch_dir:
        # the container user differs from ours
        os.chmod(scratch_dir, 0o777)
        audio_name = os.path.basename(audio_path)
        try:
            shutil.copyfile(audio_path, os.path.join(scratch_dir, audio_name))
        except OSError as e:
            raise ToolError(f"failed to stage audio file: {e}") from e

        args = recognizer_args(
            scratch_dir, audio_name, runtime=runtime, image=image, compute_type=compute_type
        )
        logger.info("Running whisperx on %s", audio_name)
        try:
            result = runner(args, timeout)
        except ProcessTimeout as e:
            raise ToolError(f"whisperx error: {e}, output: {e.output.strip()}") from e
        except OSError as e:
            raise ToolError(f"whisperx error: {e}") from e
        if result.returncode != 0:
            raise ToolError(f"whisperx error: exit status {result.returncode}, output: {result.output.strip()}")

        json_path = find_json_output(scratch_dir)
        if json_path is None:
            raise ToolError("no JSON output found from whisperx")

        try:
            with open(json_path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise ToolError(f"failed to read whisperx output: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FormatError(f"failed to parse whisperx output: {e}") from e

    return parse_segments(data)
