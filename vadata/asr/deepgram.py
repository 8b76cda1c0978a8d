"""
DeepgramEngine: pre-recorded transcription via Deepgram /v1/listen.

Requests utterances, diarization and multichannel output in one call so the same
cached response serves both mono and dual processing.
Each attempt has a hard deadline of `timeout` seconds for the whole exchange.
Transport errors (connect, read, deadline) are retried with exponential back-off;
HTTP error statuses are not.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from vadata.asr.base import TranscriptionEngine
from vadata.errors import ConfigurationError, MalformedTranscriptError, TranscriptionError
from vadata.http_retry import post_with_retry

logger = logging.getLogger(__name__)


class DeepgramEngine(TranscriptionEngine):
    def __init__(
        self,
        api_key: str,
        url: str = "https://api.deepgram.com/v1/listen",
        model: str = "phonecall",
        tier: str = "nova",
        timeout: float = 60.0,
        max_attempts: int = 3,
        retry_base_delay: float = 0.1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("DEEPGRAM_API_KEY is required for transcription")
        self._api_key = api_key
        self._url = url
        self._params = {
            "utterances": "true",
            "model": model,
            "tier": tier,
            "multichannel": "true",
            "diarize": "true",
            "punctuate": "true",
        }
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._transport = transport

    async def transcribe(self, audio: bytes, mime_type: str) -> dict[str, Any]:
        headers = {"Authorization": f"Token {self._api_key}", "Content-Type": mime_type}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await post_with_retry(
                    client,
                    self._url,
                    max_attempts=self._max_attempts,
                    base_delay=self._retry_base_delay,
                    timeout=self._timeout,
                    params=self._params,
                    content=audio,
                    headers=headers,
                )
            except httpx.TransportError as e:
                raise TranscriptionError(
                    f"Transcription request failed after {self._max_attempts} attempts: {e}"
                ) from e
        if resp.status_code != 200:
            logger.warning("Deepgram returned %s: %s", resp.status_code, resp.text[:500])
            raise TranscriptionError(f"Deepgram returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedTranscriptError("Deepgram response was not valid JSON") from e
        if not isinstance(data, dict):
            raise MalformedTranscriptError(f"Deepgram response is {type(data).__name__}, expected an object")
        return data
