"""
CloudflareChatClassifier: speaker choices via Cloudflare Workers AI text generation.
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

_SYSTEM_PROMPT = (
    "You correct speaker labels in phone call transcripts. "
    "Always respond with a JSON array of integers only, no markdown or extra text."
)


class CloudflareChatClassifier(SpeakerClassifier):
    def __init__(
        self,
        account_id: str,
        api_token: str,
        model: str = "@cf/meta/llama-3.1-8b-instruct",
        max_tokens: int = 500,
        timeout: float = 120.0,
        max_attempts: int = 3,
        retry_base_delay: float = 0.1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        account_id = (account_id or "").strip()
        api_token = (api_token or "").strip()
        if not account_id or not api_token:
            raise ConfigurationError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required for CLASSIFIER_BACKEND=cloudflare")
        self._token = api_token
        self._url = f"https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._transport = transport

    async def classify(self, windows: Sequence[ContextWindow], primary_speakers: Sequence[int]) -> list[Any]:
        if not windows:
            return []
        payload = {
            "messages": [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(windows, primary_speakers)},
            ],
            "max_tokens": self._max_tokens,
            "temperature": 0.0,
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await post_with_retry(
                    client,
                    self._url,
                    max_attempts=self._max_attempts,
                    base_delay=self._retry_base_delay,
                    timeout=self._timeout,
                    json=payload,
                    headers={"Authorization": f"Bearer {self._token}", "Content-Type": "application/json"},
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise ClassifierError(f"Workers AI request failed: {e}") from e
            data = resp.json()

        # Workers AI returns { "result": { "response": "..." } } or direct { "response": "..." }
        result = data.get("result", data)
        if isinstance(result, dict):
            content = result.get("response", "") or ""
        elif isinstance(result, str):
            content = result
        else:
            content = ""
        if not content.strip():
            raise ClassifierError("Cloudflare Workers AI returned empty response")
        return parse_speaker_choices(content, len(windows))
