"""ASR: transcription engines and the on-disk response cache."""
from vadata.config import Settings

from .base import DEFAULT_MIME_TYPE, TranscriptionEngine, mime_type_for
from .cache import TranscriptCache
from .deepgram import DeepgramEngine


def create_transcription_engine(settings: Settings) -> TranscriptionEngine:
    """Deepgram engine with credentials and retry policy from settings."""
    return DeepgramEngine(
        api_key=settings.DEEPGRAM_API_KEY,
        url=settings.DEEPGRAM_URL,
        model=settings.DEEPGRAM_MODEL,
        tier=settings.DEEPGRAM_TIER,
        timeout=settings.TRANSCRIBE_TIMEOUT_SEC,
        max_attempts=settings.TRANSCRIBE_MAX_ATTEMPTS,
        retry_base_delay=settings.RETRY_BASE_DELAY_SEC,
    )


__all__ = [
    "DEFAULT_MIME_TYPE",
    "TranscriptionEngine",
    "TranscriptCache",
    "DeepgramEngine",
    "create_transcription_engine",
    "mime_type_for",
]
