"""
Turn a raw transcription response into pipeline structures.

- Mono: flat, time-ordered list of Utterance from results.utterances.
- Dual: one Word list per channel from results.channels[i].alternatives[0].words.

Each extractor validates only the part of the response it reads. A response
without the expected list is a fatal error for the file; nothing is fabricated
to fill the gap.
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from vadata.diarization.models import Utterance, Word
from vadata.errors import MalformedTranscriptError
from vadata.schemas.transcript import ChannelResponse, TranscriptResponse, UtteranceResponse

logger = logging.getLogger(__name__)


def _validate(model: type[BaseModel], response: dict[str, Any]) -> Any:
    try:
        return model.model_validate(response)
    except ValidationError as e:
        raise MalformedTranscriptError(f"Unexpected transcript response shape: {e}") from e


def parse_response(response: dict[str, Any] | TranscriptResponse) -> TranscriptResponse:
    """Validate a full raw response dict. Already-parsed responses pass through."""
    if isinstance(response, TranscriptResponse):
        return response
    return _validate(TranscriptResponse, response)


def extract_utterances(response: dict[str, Any] | TranscriptResponse) -> list[Utterance]:
    """Return utterances in response order (the service emits them chronologically)."""
    if isinstance(response, TranscriptResponse):
        items = response.results.utterances
    else:
        items = _validate(UtteranceResponse, response).results.utterances
    if items is None:
        raise MalformedTranscriptError("Transcript response has no results.utterances list")
    utterances = [
        Utterance(speaker=u.speaker, start=u.start, end=u.end, transcript=u.transcript)
        for u in items
    ]
    logger.debug("Extracted %s utterances", len(utterances))
    return utterances


def extract_channel_words(response: dict[str, Any] | TranscriptResponse) -> list[list[Word]]:
    """Return the first alternative's words for every channel, in channel order."""
    if isinstance(response, TranscriptResponse):
        items = response.results.channels
    else:
        items = _validate(ChannelResponse, response).results.channels
    if items is None:
        raise MalformedTranscriptError("Transcript response has no results.channels list")
    channels: list[list[Word]] = []
    for channel in items:
        best = channel.alternatives[0]
        channels.append([Word(start=w.start, end=w.end, text=w.word) for w in best.words])
    logger.debug("Extracted words for %s channels", len(channels))
    return channels
