"""
Command line entry point.

  vadata run       process every recording in UPLOAD_DIR (mono or dual)
  vadata requeue   move listed recordings from FAILED_DIR back to UPLOAD_DIR

Settings come from environment variables / .env (see vadata.config); flags
override the few values that change between runs.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from vadata.config import Settings, get_settings
from vadata.errors import ConfigurationError
from vadata.pipeline import BatchOrchestrator, read_name_list, requeue_failed

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Console logging at LOG_LEVEL; also to LOG_FILE when set."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_file = (settings.LOG_FILE or "").strip()
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vadata", description="Voice-activity timelines from call recordings")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Process every recording in the upload folder")
    run.add_argument("--mode", choices=["mono", "dual"], help="Override AUDIO_MODE")
    run.add_argument("--source", help="Override UPLOAD_DIR")
    run.add_argument("--concurrency", type=_positive_int, help="Override CONCURRENCY")

    requeue = sub.add_parser("requeue", help="Move listed recordings from the failed folder back to upload")
    requeue.add_argument("list_file", help="Text file with one base name per line")
    requeue.add_argument("--failed-dir", help="Override FAILED_DIR")
    requeue.add_argument("--upload-dir", help="Override UPLOAD_DIR")
    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    updates = {}
    if getattr(args, "mode", None):
        updates["AUDIO_MODE"] = args.mode
    if getattr(args, "source", None):
        updates["UPLOAD_DIR"] = args.source
    if getattr(args, "concurrency", None) is not None:
        updates["CONCURRENCY"] = args.concurrency
    return settings.model_copy(update=updates) if updates else settings


def cmd_run(settings: Settings) -> int:
    try:
        orchestrator = BatchOrchestrator.from_settings(settings)
    except (ConfigurationError, ValueError) as e:
        logger.error("%s", e)
        return 2
    report = asyncio.run(orchestrator.run())
    if report.quarantined:
        logger.warning("Quarantined: %s", ", ".join(report.quarantined))
    return 0


def cmd_requeue(settings: Settings, args: argparse.Namespace) -> int:
    names = read_name_list(args.list_file)
    moved = requeue_failed(
        names,
        failed_dir=args.failed_dir or settings.FAILED_DIR,
        upload_dir=args.upload_dir or settings.UPLOAD_DIR,
        extensions=settings.AUDIO_EXTENSIONS,
    )
    logger.info("Requeued %s of %s listed recordings", len(moved), len(names))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = _apply_overrides(get_settings(), args)
    configure_logging(settings)
    if args.command == "run":
        return cmd_run(settings)
    return cmd_requeue(settings, args)


if __name__ == "__main__":
    sys.exit(main())
