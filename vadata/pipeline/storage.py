"""
Filesystem side of the batch: result JSON, normalized-transcript snapshots, quarantine.

Every write goes to a temporary sibling first and is moved into place with
os.replace, so a reader never sees a half-written <base-name>.json. Concurrent
workers only ever touch their own base name.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Iterable

from vadata.diarization.models import NormalizationResult
from vadata.jsonio import write_json_atomic

logger = logging.getLogger(__name__)


class ResultStore:
    """
    Voice-activity results: <output_dir>/<base>.json plus the same file in mirror_dir.
    A file counts as done once it exists in output_dir.
    """

    def __init__(self, output_dir: Path | str, mirror_dir: Path | str | None = None) -> None:
        self.output_dir = Path(output_dir)
        self.mirror_dir = Path(mirror_dir) if mirror_dir else None

    def output_path(self, base_name: str) -> Path:
        return self.output_dir / f"{base_name}.json"

    def mirror_path(self, base_name: str) -> Path | None:
        if self.mirror_dir is None:
            return None
        return self.mirror_dir / f"{base_name}.json"

    def exists(self, base_name: str) -> bool:
        return self.output_path(base_name).exists()

    def save(self, base_name: str, data: Any) -> None:
        """Write primary then mirror. Raises OSError (or TypeError for unserializable data)."""
        write_json_atomic(self.output_path(base_name), data)
        logger.info("Processed file %s.json", base_name)
        mirror = self.mirror_path(base_name)
        if mirror is not None:
            write_json_atomic(mirror, data)
            logger.info("Mirror copy saved: %s", mirror)

    def discard(self, base_name: str) -> None:
        """Remove whatever save() managed to write, so the file is not skipped next run."""
        for path in (self.output_path(base_name), self.mirror_path(base_name)):
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove partial output %s: %s", path, e)


def save_snapshot(snapshot_dir: Path | str, base_name: str, result: NormalizationResult) -> Path:
    """
    Normalized utterances for review: tn-<base>.json when speakers were rewritten,
    t-<base>.json when the transcript already had only the primary speakers.
    """
    prefix = "tn" if result.was_normalized else "t"
    path = Path(snapshot_dir) / f"{prefix}-{base_name}.json"
    write_json_atomic(path, [u.to_dict() for u in result.utterances], indent=None)
    return path


def quarantine(source_path: Path, failed_dir: Path | str) -> Path:
    """Move an unprocessable source file into failed_dir. Returns the new path."""
    failed_dir = Path(failed_dir)
    failed_dir.mkdir(parents=True, exist_ok=True)
    target = failed_dir / source_path.name
    shutil.move(str(source_path), str(target))
    logger.info("Moved %s to the failed folder.", source_path.name)
    return target


def read_name_list(list_file: Path | str) -> list[str]:
    """Base names from a text file, one per line; blank lines ignored."""
    with open(list_file, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def requeue_failed(
    names: Iterable[str],
    failed_dir: Path | str,
    upload_dir: Path | str,
    extensions: Iterable[str] = (".wav", ".mp3", ".m4a"),
) -> list[Path]:
    """Move quarantined audio whose base name is in names back into upload_dir."""
    failed_dir = Path(failed_dir)
    upload_dir = Path(upload_dir)
    wanted = set(names)
    allowed = {ext.lower() for ext in extensions}
    if not failed_dir.is_dir():
        logger.warning("Failed folder %s does not exist; nothing to requeue", failed_dir)
        return []
    upload_dir.mkdir(parents=True, exist_ok=True)
    moved: list[Path] = []
    for path in sorted(failed_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() not in allowed or path.stem not in wanted:
            continue
        target = upload_dir / path.name
        shutil.move(str(path), str(target))
        logger.info("Moved file: %s", path.name)
        moved.append(target)
    logger.info("All matching audio files moved (%s).", len(moved))
    return moved
