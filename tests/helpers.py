"""Fakes and response builders shared by the test modules."""
from __future__ import annotations

import asyncio
from typing import Any, Sequence

from vadata.asr.base import TranscriptionEngine
from vadata.classifier.base import SpeakerClassifier
from vadata.diarization.models import ContextWindow, Utterance
from vadata.errors import TranscriptionError


def utterances_for(speakers: Sequence[int]) -> list[Utterance]:
    """One utterance per speaker id, one second apart."""
    return [
        Utterance(speaker=s, start=float(i), end=i + 0.5, transcript=f"line {i}")
        for i, s in enumerate(speakers)
    ]


def mono_response(speakers: Sequence[int]) -> dict[str, Any]:
    return {
        "metadata": {"request_id": "test"},
        "results": {
            "utterances": [
                {"speaker": s, "start": float(i), "end": i + 0.5, "transcript": f"line {i}", "confidence": 0.9}
                for i, s in enumerate(speakers)
            ],
            "channels": [{"alternatives": [{"transcript": "", "words": []}]}],
        },
    }


def dual_response(*channels: Sequence[tuple[float, float]]) -> dict[str, Any]:
    return {
        "results": {
            "channels": [
                {
                    "alternatives": [
                        {"transcript": "", "words": [{"word": "w", "start": s, "end": e} for s, e in words]}
                    ]
                }
                for words in channels
            ]
        }
    }


class ScriptedClassifier(SpeakerClassifier):
    """Returns preset choices; records every call."""

    def __init__(self, choices: list[Any] | None = None, error: Exception | None = None) -> None:
        self.choices = choices
        self.error = error
        self.calls: list[tuple[list[ContextWindow], tuple[int, ...]]] = []

    async def classify(self, windows, primary_speakers):
        self.calls.append((list(windows), tuple(primary_speakers)))
        if self.error is not None:
            raise self.error
        if self.choices is None:
            return [primary_speakers[0]] * len(windows)
        return list(self.choices)


class FakeEngine(TranscriptionEngine):
    """
    Serves responses by audio content (tests write the base name into the audio file).
    Names in `failing` raise TranscriptionError. Tracks concurrent calls.
    """

    def __init__(self, responses: dict[str, dict[str, Any]], failing: set[str] | None = None, delay: float = 0.0) -> None:
        self.responses = responses
        self.failing = failing or set()
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def transcribe(self, audio: bytes, mime_type: str) -> dict[str, Any]:
        name = audio.decode("utf-8")
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if name in self.failing:
                raise TranscriptionError(f"simulated upstream failure for {name}")
            return self.responses[name]
        finally:
            self.in_flight -= 1
