"""
Speaker timelines from transcription responses.

- Mono: diarized utterances; extra speakers are folded into the two primary
  speakers (normalizer), then projected to two interval lists.
- Dual: one channel per speaker; word timings merged by silence gap (segmenter).

Limitations:
- At most two speakers per call; anything else is treated as mislabeling.
- Speaker ids are the transcription service's labels; no identity inference.
"""
from __future__ import annotations

from vadata.diarization.extractor import extract_channel_words, extract_utterances
from vadata.diarization.models import ContextWindow, NormalizationResult, SpeakerInterval, Utterance, Word
from vadata.diarization.normalizer import (
    SpeakerNormalizer,
    apply_replacements,
    build_context_windows,
    select_primary_speakers,
    to_speaker_intervals,
)
from vadata.diarization.segmenter import segment, segment_channel

__all__ = [
    "ContextWindow",
    "NormalizationResult",
    "SpeakerInterval",
    "SpeakerNormalizer",
    "Utterance",
    "Word",
    "apply_replacements",
    "build_context_windows",
    "extract_channel_words",
    "extract_utterances",
    "segment",
    "segment_channel",
    "select_primary_speakers",
    "to_speaker_intervals",
]
