"""
TranscriptionEngine: abstract interface for the speech-to-text service.

Implementation: DeepgramEngine. TranscriptCache wraps any engine and stores
responses on disk so repeat runs skip the network call.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

_MIME_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type_for(path: Path | str) -> str:
    """Content-Type for an audio file, from its extension; generic binary when unknown."""
    return _MIME_TYPES.get(Path(path).suffix.lower(), DEFAULT_MIME_TYPE)


class TranscriptionEngine(ABC):
    """
    Abstract transcription engine.
    transcribe() returns the service's JSON response as a dict (word and utterance timing).
    """

    @abstractmethod
    async def transcribe(self, audio: bytes, mime_type: str) -> dict[str, Any]:
        """
        Transcribe one whole recording.
        Raises TranscriptionError when the service cannot be reached or rejects the request.
        """
        ...
