"""
Schemas for the transcription service response (Deepgram /v1/listen).

Only the fields the pipeline reads are declared; everything else is ignored.
Mono path: results.utterances[] (speaker, start, end, transcript).
Dual path: results.channels[].alternatives[0].words[] (start, end, word).
UtteranceResponse and ChannelResponse validate only the branch one mode reads.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TranscriptWord(_Lenient):
    """One recognized word in a channel alternative."""

    word: str = Field("", description="Raw word text")
    start: float = Field(..., ge=0.0, description="Start time in seconds")
    end: float = Field(..., ge=0.0, description="End time in seconds")


class TranscriptAlternative(_Lenient):
    transcript: str = ""
    words: list[TranscriptWord] = Field(default_factory=list)


class TranscriptChannel(_Lenient):
    alternatives: list[TranscriptAlternative] = Field(..., min_length=1)


class TranscriptUtterance(_Lenient):
    """One diarized utterance (requested with utterances=true&diarize=true)."""

    speaker: int = Field(..., ge=0, description="Diarization label")
    start: float = Field(..., ge=0.0)
    end: float = Field(..., ge=0.0)
    transcript: str = ""
    channel: int = 0


class TranscriptResults(_Lenient):
    utterances: list[TranscriptUtterance] | None = None
    channels: list[TranscriptChannel] | None = None


class TranscriptResponse(_Lenient):
    """Top-level response body."""

    results: TranscriptResults


class UtteranceResults(_Lenient):
    utterances: list[TranscriptUtterance] | None = None


class UtteranceResponse(_Lenient):
    """Mono view of the body: channels are not validated."""

    results: UtteranceResults


class ChannelResults(_Lenient):
    channels: list[TranscriptChannel] | None = None


class ChannelResponse(_Lenient):
    """Dual view of the body: utterances are not validated."""

    results: ChannelResults
