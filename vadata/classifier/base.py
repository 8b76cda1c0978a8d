"""
SpeakerClassifier: abstract interface for resolving mislabeled utterances.

Implementations: OpenAIChatClassifier, CloudflareChatClassifier.
Both send the same prompt and parse the reply with parse_speaker_choices().
"""
from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Sequence

from vadata.diarization.models import ContextWindow
from vadata.errors import ClassifierError


class SpeakerClassifier(ABC):
    """
    Returns one speaker choice per context window, in window order.
    Choices outside the primary speakers are allowed; the normalizer replaces them.
    """

    @abstractmethod
    async def classify(self, windows: Sequence[ContextWindow], primary_speakers: Sequence[int]) -> list[Any]:
        ...


def build_prompt(windows: Sequence[ContextWindow], primary_speakers: Sequence[int]) -> str:
    """Prompt enumerating every window as 'Context k' with 'speaker: transcript' lines."""
    p1, p2 = primary_speakers[0], primary_speakers[1]
    parts = [
        "In the following, each context is a series of consecutive lines from a two-person phone call. "
        "In each context exactly one line has an incorrect speaker label. "
        f"Determine which of the two primary speakers ({p1} or {p2}) actually said that line.",
        "The mislabeled line is normally line 11 of its context. When fewer than 10 lines precede it, "
        "it is closer to the start; the exact line number is given with each context.",
        "Here are the dialogue contexts:",
    ]
    for k, window in enumerate(windows, start=1):
        lines = [f"Context {k} (mislabeled line: {window.flagged_offset + 1}):"]
        for u in window.utterances:
            lines.append(f"{u.speaker}: {u.transcript}")
        parts.append("\n".join(lines))
    parts.append(
        f"Return the speaker ({p1} or {p2}) for each context, in the same order as the contexts were presented. "
        "If the mislabeled line is silence, '--', or text that cannot be attributed to either primary speaker, "
        "assign the speaker that differs from the speaker of the line before it. "
        f"Return only a JSON array of exactly {len(windows)} integers, e.g. [{p1}, {p2}, {p1}]."
    )
    return "\n\n".join(parts)


def _first_json_array(text: str) -> list[Any] | None:
    """First '[' in text that starts a complete JSON array; trailing prose is ignored."""
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\[", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list):
            return value
    return None


def parse_speaker_choices(raw: str, expected: int) -> list[Any]:
    """Extract the JSON array from a model reply (may be wrapped in a markdown code block)."""
    raw = (raw or "").strip()
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```\s*$", "", raw)
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        parsed = _first_json_array(raw)
        if parsed is None:
            raise ClassifierError(f"Classifier reply has no JSON array: {raw[:200]!r}")
    if not isinstance(parsed, list):
        raise ClassifierError(f"Classifier reply is {type(parsed).__name__}, expected a JSON array")
    if len(parsed) != expected:
        raise ClassifierError(f"Classifier returned {len(parsed)} choices for {expected} contexts")
    return parsed
