"""
Speaker-attributed structures for the voice-activity pipeline.

- Utterance: one diarized span (speaker id, start/end seconds, transcript text).
- Word: one word of a channel; source of truth for dual-channel segmentation.
- ContextWindow: slice of utterances around one mislabeled utterance.
- NormalizationResult: utterances after speaker correction, plus what changed.

Speaker ids are opaque small integers assigned by the transcription service.
They are not guaranteed to be exactly two values, and their meaning is not stable
across files.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field

# (start, end) in seconds; serialized as a two-element JSON array
SpeakerInterval = tuple[float, float]


@dataclass(frozen=True)
class Utterance:
    """
    One speaker-tagged utterance.

    start, end: seconds from the start of the recording, start <= end.
    speaker: diarization label from the transcription service.
    """

    speaker: int
    start: float
    end: float
    transcript: str = ""

    def with_speaker(self, speaker: int) -> "Utterance":
        return Utterance(speaker=speaker, start=self.start, end=self.end, transcript=self.transcript)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Word:
    """Single word with start/end in seconds."""

    start: float
    end: float
    text: str = ""


@dataclass(frozen=True)
class ContextWindow:
    """
    Contiguous slice of the utterance sequence around one flagged utterance.

    flagged_index: position of the flagged utterance in the full sequence.
    flagged_offset: its position inside this window (10, or less near the start).
    """

    utterances: tuple[Utterance, ...]
    flagged_index: int
    flagged_offset: int

    def __len__(self) -> int:
        return len(self.utterances)

    @property
    def flagged(self) -> Utterance:
        return self.utterances[self.flagged_offset]


@dataclass
class NormalizationResult:
    """
    Utterances after speaker normalization.

    primary_speakers: the (at most two) dominant speaker ids, most frequent first.
    replaced_indexes: positions whose speaker was rewritten; empty when the input
    was already limited to the primary speakers.
    """

    utterances: list[Utterance]
    primary_speakers: tuple[int, ...]
    replaced_indexes: list[int] = field(default_factory=list)

    @property
    def was_normalized(self) -> bool:
        return bool(self.replaced_indexes)
