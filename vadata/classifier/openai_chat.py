"""
OpenAIChatClassifier: speaker choices from an OpenAI-compatible chat completions API.

One request per file: every context window goes into a single user message.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from vadata.classifier.base import SpeakerClassifier, build_prompt, parse_speaker_choices
from vadata.diarization.models import ContextWindow
from vadata.errors import ClassifierError, ConfigurationError
from vadata.http_retry import post_with_retry

logger = logging.getLogger(__name__)


class OpenAIChatClassifier(SpeakerClassifier):
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        timeout: float = 120.0,
        max_attempts: int = 3,
        retry_base_delay: float = 0.1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required for CLASSIFIER_BACKEND=openai")
        self._api_key = api_key
        self._model = model
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._transport = transport

    async def classify(self, windows: Sequence[ContextWindow], primary_speakers: Sequence[int]) -> list[Any]:
        if not windows:
            return []
        prompt = build_prompt(windows, primary_speakers)
        payload = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._max_tokens,
            "temperature": 0,
        }
        logger.info("Classifier request: model=%s, contexts=%s, prompt_len=%s", self._model, len(windows), len(prompt))

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await post_with_retry(
                    client,
                    self._url,
                    max_attempts=self._max_attempts,
                    base_delay=self._retry_base_delay,
                    timeout=self._timeout,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"},
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise ClassifierError(f"Classifier request failed: {e}") from e
            data = resp.json()

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierError("Classifier response has no message content") from e
        logger.debug("Classifier reply: %s", content)
        return parse_speaker_choices(content, len(windows))
