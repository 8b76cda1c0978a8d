"""Pipeline exceptions. Anything raised while processing one file quarantines that file."""
from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Base for file-level failures."""


class ConfigurationError(PipelineError):
    """Raised when a backend is selected without the credentials it needs."""


class AudioNotFoundError(PipelineError):
    """Raised when no audio file with a recognized extension exists for a base name."""

    def __init__(self, source_dir: Path, base_name: str, extensions: list[str]):
        self.source_dir = source_dir
        self.base_name = base_name
        self.extensions = extensions
        super().__init__(
            f"No audio for {base_name!r} in {source_dir} (tried {', '.join(extensions)})"
        )


class TranscriptionError(PipelineError):
    """Transcription request failed (retries exhausted or non-2xx response)."""


class MalformedTranscriptError(PipelineError):
    """Transcription response does not have the expected shape. Never retried."""


class ClassifierError(PipelineError):
    """Speaker classifier failed or returned an unusable result list."""


class PersistenceError(PipelineError):
    """Writing the result failed, including the single retry."""
