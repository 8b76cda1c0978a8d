"""
Speaker normalization for single-channel (diarized) calls.

Diarization on mono phone audio regularly invents extra speakers. A call has two
parties, so:

1. The two most frequent speaker ids are the primary speakers (P1 most frequent).
   Ties are broken by first appearance in the sequence.
2. Every utterance from any other id is flagged, and a context window of up to
   CONTEXT_RADIUS utterances before and after it is cut from the sequence.
3. All windows go to the speaker classifier in one request; it returns one choice
   per window, in order.
4. Choices are applied positionally. A choice that is not P1 or P2 falls back to P1.

If the classifier fails or returns the wrong number of choices, ClassifierError is
raised and nothing is applied.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, Sequence

from vadata.diarization.models import ContextWindow, NormalizationResult, SpeakerInterval, Utterance
from vadata.errors import ClassifierError

if TYPE_CHECKING:
    from vadata.classifier.base import SpeakerClassifier

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_RADIUS = 10


def select_primary_speakers(utterances: Sequence[Utterance]) -> tuple[int, ...]:
    """Up to two speaker ids with the most utterances, most frequent first.

    Counter.most_common sorts stably, so equal counts keep first-seen order.
    """
    counts = Counter(u.speaker for u in utterances)
    return tuple(speaker for speaker, _ in counts.most_common(2))


def build_context_windows(
    utterances: Sequence[Utterance],
    primary_speakers: Sequence[int],
    radius: int = DEFAULT_CONTEXT_RADIUS,
) -> list[ContextWindow]:
    """One window per non-primary utterance, clipped to the sequence bounds."""
    windows: list[ContextWindow] = []
    total = len(utterances)
    for index, utterance in enumerate(utterances):
        if utterance.speaker in primary_speakers:
            continue
        lo = max(0, index - radius)
        hi = min(total, index + radius + 1)
        windows.append(
            ContextWindow(
                utterances=tuple(utterances[lo:hi]),
                flagged_index=index,
                flagged_offset=index - lo,
            )
        )
    return windows


def _accepted_choice(choice: Any, primary_speakers: Sequence[int]) -> int | None:
    # bool is an int subclass; True must not pass for speaker 1
    if isinstance(choice, bool) or not isinstance(choice, int):
        return None
    return choice if choice in primary_speakers else None


def apply_replacements(
    utterances: Sequence[Utterance],
    flagged_indexes: Sequence[int],
    choices: Sequence[Any],
    primary_speakers: Sequence[int],
) -> list[Utterance]:
    """
    New utterance list with one choice consumed per flagged index, in order.
    Invalid choices fall back to the first primary speaker. Unflagged entries are reused as is.
    """
    if len(choices) != len(flagged_indexes):
        raise ClassifierError(
            f"Expected {len(flagged_indexes)} speaker choices, got {len(choices)}"
        )
    fallback = primary_speakers[0]
    replacement = dict(zip(flagged_indexes, choices))
    updated: list[Utterance] = []
    for index, utterance in enumerate(utterances):
        if index not in replacement:
            updated.append(utterance)
            continue
        speaker = _accepted_choice(replacement[index], primary_speakers)
        if speaker is None:
            logger.info(
                "Classifier choice %r for utterance %s is not a primary speaker; using %s",
                replacement[index], index, fallback,
            )
            speaker = fallback
        updated.append(utterance.with_speaker(speaker))
    return updated


class SpeakerNormalizer:
    """
    Rewrites non-primary speaker ids to one of the two primary speakers.
    The classifier is injected so tests can script its answers.
    """

    def __init__(self, classifier: "SpeakerClassifier", context_radius: int = DEFAULT_CONTEXT_RADIUS) -> None:
        self._classifier = classifier
        self._context_radius = context_radius

    async def normalize(self, utterances: Sequence[Utterance]) -> NormalizationResult:
        utterances = list(utterances)
        primary_speakers = select_primary_speakers(utterances)
        if len(primary_speakers) < 2:
            logger.info("Fewer than two speakers (%s); nothing to normalize", list(primary_speakers))
            return NormalizationResult(utterances=utterances, primary_speakers=primary_speakers)

        windows = build_context_windows(utterances, primary_speakers, self._context_radius)
        logger.info(
            "Primary speakers %s; %s of %s utterances flagged",
            list(primary_speakers), len(windows), len(utterances),
        )
        if not windows:
            return NormalizationResult(utterances=utterances, primary_speakers=primary_speakers)

        try:
            choices = await self._classifier.classify(windows, primary_speakers)
        except ClassifierError:
            raise
        except Exception as e:
            raise ClassifierError(f"Speaker classifier failed: {e}") from e
        if not isinstance(choices, (list, tuple)):
            raise ClassifierError(f"Speaker classifier returned {type(choices).__name__}, expected a list")
        logger.debug("Classifier choices: %s", list(choices))

        flagged_indexes = [w.flagged_index for w in windows]
        normalized = apply_replacements(utterances, flagged_indexes, choices, primary_speakers)
        return NormalizationResult(
            utterances=normalized,
            primary_speakers=primary_speakers,
            replaced_indexes=flagged_indexes,
        )


def to_speaker_intervals(result: NormalizationResult) -> list[list[SpeakerInterval]]:
    """Two interval lists: primary speaker P1 first, then P2. Source order is preserved."""
    lanes: list[list[SpeakerInterval]] = [[], []]
    slot = {speaker: i for i, speaker in enumerate(result.primary_speakers)}
    for utterance in result.utterances:
        i = slot.get(utterance.speaker)
        if i is None:
            continue
        lanes[i].append((utterance.start, utterance.end))
    return lanes
