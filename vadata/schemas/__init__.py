"""Pydantic schemas for the transcription service response."""
from vadata.schemas.transcript import (
    ChannelResponse,
    ChannelResults,
    TranscriptAlternative,
    TranscriptChannel,
    TranscriptResponse,
    TranscriptResults,
    TranscriptUtterance,
    TranscriptWord,
    UtteranceResponse,
    UtteranceResults,
)

__all__ = [
    "ChannelResponse",
    "ChannelResults",
    "TranscriptAlternative",
    "TranscriptChannel",
    "TranscriptResponse",
    "TranscriptResults",
    "TranscriptUtterance",
    "TranscriptWord",
    "UtteranceResponse",
    "UtteranceResults",
]
