"""
Structured logging for grab sessions.
Writes one JSON object per event to a `.jsonl` file next to the console log.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.markup import escape

from torrent_grab.models.outcome import Failure, ResolutionOutcome
from torrent_grab.models.release import ReleaseRecord


class StructuredLogger:
    """
    Logger that emits events both to the standard logger and, optionally, to a
    JSON lines file.

    Usage:
        logger = StructuredLogger("torrent_grab", log_dir=Path("logs"))
        logger.info("release_grabbed", title="Show.S01E01", info_hash="abc...")
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
        """
        self.name = name
        self.enable_json = enable_json and log_dir is not None
        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"torrent_grab_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
        }

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }
        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def log(self, level: int, event: str, **context) -> None:
        if self._logger.isEnabledFor(level):
            details = " ".join(f"{key}={value}" for key, value in context.items())
            self._logger.log(level, escape(f"{event}: {details}".rstrip(": ")))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self.log(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self.log(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self.log(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self.log(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class GrabEventLogger:
    """Events for individual releases. Console output stays at DEBUG level."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def grab_started(self, release: ReleaseRecord):
        self.logger.debug(
            "release_grab_started",
            title=release.title,
            indexer=release.indexer,
            download_url=release.download_url,
            has_magnet=bool(release.magnet_url),
        )

    def grab_completed(
        self, release: ReleaseRecord, outcome: ResolutionOutcome, duration_s: float
    ):
        self.logger.debug(
            "release_grabbed",
            title=release.title,
            info_hash=outcome.info_hash,
            via="magnet" if outcome.via_magnet else "torrent",
            duration_s=round(duration_s, 2),
        )
        if mismatch := outcome.hash_mismatch:
            self.logger.debug(
                "release_hash_mismatch",
                title=release.title,
                locator=mismatch.locator,
                expected=mismatch.expected,
                reported=mismatch.reported,
            )

    def grab_failed(self, release: ReleaseRecord, failure: Failure, duration_s: float):
        self.logger.debug(
            "release_grab_failed",
            title=release.title,
            kind=failure.kind.value,
            root_kind=failure.root.kind.value,
            error=failure.describe(),
            duration_s=round(duration_s, 2),
        )


class SessionLogger:
    """Events for a whole batch."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def session_started(self, total_releases: int, backend: str, max_workers: int):
        self.logger.info(
            "session_started",
            total_releases=total_releases,
            backend=backend,
            max_workers=max_workers,
        )

    def session_completed(
        self, duration_s: float, grabbed: int, failed: int, hash_mismatches: int
    ):
        self.logger.info(
            "session_completed",
            duration_s=round(duration_s, 2),
            grabbed=grabbed,
            failed=failed,
            hash_mismatches=hash_mismatches,
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, GrabEventLogger, SessionLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, grab_logger, session_logger)
    """
    base = StructuredLogger("torrent_grab.events", log_dir=log_dir, enable_json=enable_json)
    return base, GrabEventLogger(base), SessionLogger(base)
