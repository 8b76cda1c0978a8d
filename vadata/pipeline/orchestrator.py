"""
BatchOrchestrator: turns a folder of call recordings into voice-activity JSON.

Per file (independent of every other file):
1. Skip when <output_dir>/<base>.json already exists.
2. Resolve the audio file by trying AUDIO_EXTENSIONS in order.
3. Transcription response from the cache, else from the service.
4. Mono: extract utterances -> normalize speakers -> two interval lists.
   Dual: per-channel words -> gap segmentation -> one interval list per channel.
5. Save to output and mirror folders; the save step is retried once.
6. Any failure moves the source file to the failed folder; the batch continues.

At most `concurrency` files are in flight; there is no ordering between files.
Blocking file writes and moves run in the default executor.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Literal

from vadata.asr import TranscriptCache, TranscriptionEngine, create_transcription_engine
from vadata.classifier import SpeakerClassifier, create_speaker_classifier
from vadata.config import Settings
from vadata.diarization.extractor import extract_channel_words, extract_utterances
from vadata.diarization.models import SpeakerInterval
from vadata.diarization.normalizer import SpeakerNormalizer, to_speaker_intervals
from vadata.diarization.segmenter import DEFAULT_GAP_THRESHOLD, segment
from vadata.errors import AudioNotFoundError, PersistenceError
from vadata.pipeline.storage import ResultStore, quarantine, save_snapshot

logger = logging.getLogger(__name__)

AudioMode = Literal["mono", "dual"]


class FileOutcome(str, Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    QUARANTINED = "quarantined"


@dataclass
class BatchReport:
    """Outcome per base name for one run."""

    outcomes: dict[str, FileOutcome] = field(default_factory=dict)

    def _names(self, outcome: FileOutcome) -> list[str]:
        return sorted(name for name, o in self.outcomes.items() if o is outcome)

    @property
    def skipped(self) -> list[str]:
        return self._names(FileOutcome.SKIPPED)

    @property
    def succeeded(self) -> list[str]:
        return self._names(FileOutcome.SUCCEEDED)

    @property
    def quarantined(self) -> list[str]:
        return self._names(FileOutcome.QUARANTINED)


class BatchOrchestrator:
    def __init__(
        self,
        cache: TranscriptCache,
        store: ResultStore,
        source_dir: Path | str,
        failed_dir: Path | str,
        normalizer: SpeakerNormalizer | None = None,
        mode: AudioMode = "mono",
        concurrency: int = 5,
        gap_threshold: float = DEFAULT_GAP_THRESHOLD,
        audio_extensions: Iterable[str] = (".wav", ".mp3", ".m4a"),
        snapshot_dir: Path | str | None = None,
    ) -> None:
        if mode not in ("mono", "dual"):
            raise ValueError(f"mode must be 'mono' or 'dual', got {mode!r}")
        if mode == "mono" and normalizer is None:
            raise ValueError("mono mode needs a SpeakerNormalizer")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._cache = cache
        self._store = store
        self._source_dir = Path(source_dir)
        self._failed_dir = Path(failed_dir)
        self._normalizer = normalizer
        self._mode = mode
        self._concurrency = concurrency
        self._gap_threshold = gap_threshold
        self._extensions = list(audio_extensions)
        self._snapshot_dir = Path(snapshot_dir) if snapshot_dir else None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        engine: TranscriptionEngine | None = None,
        classifier: SpeakerClassifier | None = None,
    ) -> "BatchOrchestrator":
        """Wire engines and folders from settings. The classifier is only built for mono mode."""
        engine = engine or create_transcription_engine(settings)
        normalizer = None
        if settings.AUDIO_MODE == "mono":
            classifier = classifier or create_speaker_classifier(settings)
            normalizer = SpeakerNormalizer(classifier, context_radius=settings.CONTEXT_RADIUS)
        return cls(
            cache=TranscriptCache(engine, settings.RESPONSE_DIR),
            store=ResultStore(settings.OUTPUT_DIR, settings.MIRROR_DIR or None),
            source_dir=settings.UPLOAD_DIR,
            failed_dir=settings.FAILED_DIR,
            normalizer=normalizer,
            mode=settings.AUDIO_MODE,
            concurrency=settings.CONCURRENCY,
            gap_threshold=settings.UTTERANCE_GAP_SEC,
            audio_extensions=settings.AUDIO_EXTENSIONS,
            snapshot_dir=settings.TRANSCRIPT_SNAPSHOT_DIR or None,
        )

    def list_entries(self) -> list[Path]:
        """Visible files in the source folder, one per base name (first in sorted order)."""
        if not self._source_dir.is_dir():
            logger.warning("Source folder %s does not exist", self._source_dir)
            return []
        entries: list[Path] = []
        seen: set[str] = set()
        for path in sorted(self._source_dir.iterdir()):
            if path.name.startswith(".") or not path.is_file():
                continue
            if path.stem in seen:
                continue
            seen.add(path.stem)
            entries.append(path)
        return entries

    def resolve_audio(self, base_name: str) -> Path:
        for ext in self._extensions:
            candidate = self._source_dir / f"{base_name}{ext}"
            if candidate.is_file():
                return candidate
            logger.debug("File %s does not exist, trying next extension", candidate)
        raise AudioNotFoundError(self._source_dir, base_name, self._extensions)

    async def build_voice_activity(self, audio_path: Path) -> list[list[SpeakerInterval]]:
        """Interval lists for one recording (two for mono, one per channel for dual)."""
        response: dict[str, Any] = await self._cache.fetch(audio_path)
        if self._mode == "dual":
            return segment(extract_channel_words(response), self._gap_threshold)

        utterances = extract_utterances(response)
        result = await self._normalizer.normalize(utterances)
        if self._snapshot_dir is not None:
            loop = asyncio.get_event_loop()
            path = await loop.run_in_executor(None, save_snapshot, self._snapshot_dir, audio_path.stem, result)
            logger.debug("Normalized transcript saved: %s", path)
        return to_speaker_intervals(result)

    def _save_with_retry(self, base_name: str, data: list[list[SpeakerInterval]]) -> None:
        try:
            self._store.save(base_name, data)
            return
        except Exception as e:
            logger.error("Failed to save data for %s: %s", base_name, e)
        logger.info("Attempting to save %s again", base_name)
        try:
            self._store.save(base_name, data)
        except Exception as e:
            self._store.discard(base_name)
            raise PersistenceError(f"Failed second time to save data for {base_name}: {e}") from e

    def _quarantine(self, path: Path) -> None:
        if not path.exists():
            logger.warning("Cannot quarantine %s: file no longer exists", path)
            return
        try:
            quarantine(path, self._failed_dir)
        except OSError as e:
            logger.error("Could not move %s to the failed folder: %s", path.name, e)

    async def process_file(self, entry: Path) -> FileOutcome:
        """Run the full pipeline for one source entry. Never raises."""
        base_name = entry.stem
        if self._store.exists(base_name):
            logger.info("%s exists, skipping...", self._store.output_path(base_name))
            return FileOutcome.SKIPPED
        logger.info("%s does not exist, generating data...", self._store.output_path(base_name))

        loop = asyncio.get_event_loop()
        source = entry
        try:
            source = self.resolve_audio(base_name)
            va_data = await self.build_voice_activity(source)
            await loop.run_in_executor(None, self._save_with_retry, base_name, va_data)
        except Exception as e:
            logger.error("Failed to process %s: %s", entry.name, e, exc_info=not isinstance(e, AudioNotFoundError))
            await loop.run_in_executor(None, self._quarantine, source)
            return FileOutcome.QUARANTINED
        logger.info("Finished %s", entry.name)
        return FileOutcome.SUCCEEDED

    async def run(self) -> BatchReport:
        """Process every file in the source folder with bounded concurrency."""
        entries = self.list_entries()
        logger.info(
            "Processing %s files from %s (mode=%s, concurrency=%s)",
            len(entries), self._source_dir, self._mode, self._concurrency,
        )
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _limited(entry: Path) -> FileOutcome:
            async with semaphore:
                return await self.process_file(entry)

        outcomes = await asyncio.gather(*(_limited(entry) for entry in entries))
        report = BatchReport(outcomes={entry.stem: outcome for entry, outcome in zip(entries, outcomes)})
        logger.info(
            "All files processed: %s succeeded, %s skipped, %s quarantined",
            len(report.succeeded), len(report.skipped), len(report.quarantined),
        )
        return report
