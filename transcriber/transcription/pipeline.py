import logging
import os
from typing import List

from transcriber.core.config import Settings
from transcriber.metadata.records import MetadataStore
from transcriber.models.schemas import TranscriptSegment
from transcriber.transcription.errors import InputError, PipelineError
from transcriber.transcription.extract import cleanup_audio, extract_audio
from transcriber.transcription.integrate import integrate
from transcriber.transcription.media_types import MediaKind, classify
from transcriber.transcription.recognize import recognize
from transcriber.utils.process import ProcessRunner, run_command

logger = logging.getLogger(__name__)


class TranscriptionPipeline:
    """Drives one file through extraction (video only), recognition and integration.
    Why available: The worker calls run() per dequeued filename; every stage failure surfaces as a PipelineError naming the stage."""

    def __init__(
        self,
        settings: Settings,
        metadata: MetadataStore,
        runner: ProcessRunner = run_command,
    ):
        self.settings = settings
        self.metadata = metadata
        self.runner = runner

    def run(self, filename: str) -> List[TranscriptSegment]:
        media_path = os.path.abspath(os.path.join(self.settings.media_dir, filename))

        try:
            kind = self._check_input(filename, media_path)
        except InputError as e:
            raise PipelineError("input", e) from e

        audio_path = media_path
        extracted = None
        try:
            if kind is MediaKind.VIDEO:
                extracted = os.path.join(self.settings.transcripts_dir, filename + ".wav")
                try:
                    os.makedirs(self.settings.transcripts_dir, exist_ok=True)
                    audio_path = extract_audio(
                        media_path,
                        extracted,
                        runner=self.runner,
                        ffmpeg_bin=self.settings.ffmpeg_bin,
                        timeout=self.settings.tool_timeout,
                    )
                except Exception as e:
                    raise PipelineError("extraction", e) from e

            try:
                segments = recognize(
                    audio_path,
                    runner=self.runner,
                    runtime=self.settings.container_runtime,
                    image=self.settings.whisperx_image,
                    compute_type=self.settings.whisperx_compute_type,
                    timeout=self.settings.tool_timeout,
                )
            except Exception as e:
                raise PipelineError("recognition", e) from e
        finally:
            cleanup_audio(extracted)

        try:
            integrate(filename, segments, self.metadata, self.settings.transcripts_dir)
        except Exception as e:
            raise PipelineError("integration", e) from e
        return segments

    @staticmethod
    def _check_input(filename: str, media_path: str) -> MediaKind:
        if not os.path.isfile(media_path):
            raise InputError(f"file does not exist: {media_path}")
        kind = classify(filename)
        if kind not in (MediaKind.AUDIO, MediaKind.VIDEO):
            raise InputError(f"unsupported file type: {filename}")
        return kind
