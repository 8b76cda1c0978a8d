"""
TranscriptCache: disk cache in front of a TranscriptionEngine.

One file per recording: <response_dir>/<base-name>.json. A cached response is read
back as is; otherwise the audio is sent to the engine and the response saved.
File reads and writes run in the default executor so other files keep moving.
"""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from vadata.asr.base import TranscriptionEngine, mime_type_for
from vadata.errors import MalformedTranscriptError
from vadata.jsonio import write_json_atomic

logger = logging.getLogger(__name__)


class TranscriptCache:
    def __init__(self, engine: TranscriptionEngine, response_dir: Path | str) -> None:
        self._engine = engine
        self._response_dir = Path(response_dir)

    def path_for(self, base_name: str) -> Path:
        return self._response_dir / f"{base_name}.json"

    def load(self, base_name: str) -> dict[str, Any] | None:
        """Cached response, or None when the file was never transcribed."""
        path = self.path_for(base_name)
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedTranscriptError(f"Cached response {path} is not valid JSON") from e

    def store(self, base_name: str, response: dict[str, Any]) -> Path:
        """Write the response atomically; a failed write leaves no cache file behind."""
        path = self.path_for(base_name)
        write_json_atomic(path, response, indent=None)
        return path

    async def fetch(self, audio_path: Path) -> dict[str, Any]:
        """Response for audio_path, from cache when present."""
        base_name = audio_path.stem
        loop = asyncio.get_event_loop()
        cached = await loop.run_in_executor(None, self.load, base_name)
        if cached is not None:
            logger.info("Existing transcription response read for %s", base_name)
            return cached

        logger.info("No cached response for %s; calling transcription service", base_name)
        audio = await loop.run_in_executor(None, audio_path.read_bytes)
        response = await self._engine.transcribe(audio, mime_type_for(audio_path))
        await loop.run_in_executor(None, self.store, base_name, response)
        logger.info("Transcription response saved for %s", base_name)
        return response
