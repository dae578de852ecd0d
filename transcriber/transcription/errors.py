"""
Transcription error taxonomy. Every class below ends a job as failed; none of them stops the worker.
"""


class TranscriptionError(Exception):
    """Base class for errors that fail a single transcription job."""


class InputError(TranscriptionError):
    """Media file missing or of an unsupported type."""


class ToolError(TranscriptionError):
    """External tool (ffmpeg, recognizer container) exited non-zero, timed out, or produced no output."""


class FormatError(TranscriptionError):
    """Recognizer output present but not valid JSON or missing the segments array."""


class PersistenceError(TranscriptionError):
    """Metadata record missing, unreadable, or unwritable."""


class PipelineError(TranscriptionError):
    """Failure of one pipeline stage. str() is "<stage>: <cause>" and is what ends up in the .failed marker and status row."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")
