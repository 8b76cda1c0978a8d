"""
Dual-channel segmentation: merge word timings into speech intervals.

Each channel is one speaker. Consecutive words are merged into one interval while
the silence between them stays within the gap threshold; a longer gap closes the
interval and opens a new one at the next word. Channels are independent.
"""
from __future__ import annotations

from typing import Sequence

from vadata.diarization.models import SpeakerInterval, Word

DEFAULT_GAP_THRESHOLD = 0.8


def segment_channel(words: Sequence[Word], gap_threshold: float = DEFAULT_GAP_THRESHOLD) -> list[SpeakerInterval]:
    """Intervals for one channel. No words -> no intervals."""
    if not words:
        return []
    intervals: list[SpeakerInterval] = []
    start = words[0].start
    end = words[0].end
    for word in words[1:]:
        if word.start - end > gap_threshold:
            intervals.append((start, end))
            start = word.start
        end = word.end
    intervals.append((start, end))
    return intervals


def segment(
    channels: Sequence[Sequence[Word]],
    gap_threshold: float = DEFAULT_GAP_THRESHOLD,
) -> list[list[SpeakerInterval]]:
    """One interval list per input channel, in channel order."""
    return [segment_channel(words, gap_threshold) for words in channels]
