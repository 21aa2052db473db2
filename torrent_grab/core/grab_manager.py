"""
The orchestrator for loading releases and grabbing them concurrently.
"""

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from rich.markup import escape

from torrent_grab.exceptions import ConfigurationError
from torrent_grab.models.config import GrabConfig
from torrent_grab.models.outcome import Failure, FailureKind, ResolutionOutcome
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.models.stats import GrabStats
from torrent_grab.utils.structured_logger import GrabEventLogger, SessionLogger

from .resolver import AcquisitionResolver

log = logging.getLogger(__name__)

GrabResult = Tuple[ReleaseRecord, ResolutionOutcome]


def load_releases(path: Path) -> List[ReleaseRecord]:
    """
    Reads releases from a JSON file: either a list of release objects or an
    object with a 'releases' list.

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read releases from '{path}': {e}") from e

    if isinstance(data, dict):
        data = data.get("releases")
    if not isinstance(data, list):
        raise ConfigurationError(
            f"'{path}' must contain a list of releases or a 'releases' list."
        )

    releases = []
    for index, entry in enumerate(data):
        try:
            releases.append(ReleaseRecord.from_dict(entry))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Release #{index + 1} in '{path}' is invalid: {e}") from e
    return releases


class GrabManager:
    """Grabs a batch of releases with bounded concurrency."""

    def __init__(
        self,
        config: GrabConfig,
        resolver: AcquisitionResolver,
        events: Optional[GrabEventLogger] = None,
        session_log: Optional[SessionLogger] = None,
    ):
        self.config = config
        self.resolver = resolver
        self.events = events
        self.session_log = session_log
        self.stats = GrabStats()
        self.start_time = time.monotonic()
        self.semaphore = asyncio.Semaphore(config.max_workers)

    def save_session_stats(self) -> None:
        """Saves the current session's stats to a history file."""
        stats_file = Path(self.config.config_path) / "session_history.jsonl"
        try:
            with open(stats_file, "a", encoding="utf-8") as f:
                session_data = {
                    "timestamp": int(time.time()),
                    "backend": self.config.backend,
                    "releases_grabbed": self.stats.releases_grabbed,
                    "releases_failed": self.stats.releases_failed,
                    "duplicates_skipped": self.stats.duplicates_skipped,
                    "hash_mismatches": self.stats.hash_mismatches,
                    "failures_by_kind": dict(self.stats.failures_by_kind),
                    "duration_seconds": round(time.monotonic() - self.start_time, 2),
                }
                json.dump(session_data, f)
                f.write("\n")
        except OSError as e:
            log.warning(f"[yellow]Could not save session stats:[/] {e}")

    async def grab_all(self, releases: Iterable[ReleaseRecord]) -> List[GrabResult]:
        """
        Resolves every unique release. Duplicates are dropped, so one result is
        returned per unique release, in first-seen order.
        """
        releases = list(releases)
        unique = list(dict.fromkeys(releases))
        self.stats.duplicates_skipped = len(releases) - len(unique)
        if self.stats.duplicates_skipped:
            log.info(f"Removed {self.stats.duplicates_skipped} duplicate releases.")

        if not unique:
            log.warning("[yellow]No releases to grab.[/yellow]")
            return []

        if self.session_log:
            self.session_log.session_started(
                total_releases=len(unique),
                backend=self.config.backend,
                max_workers=self.config.max_workers,
            )

        outcomes = await asyncio.gather(*(self.grab(release) for release in unique))

        if self.session_log:
            self.session_log.session_completed(
                duration_s=time.monotonic() - self.start_time,
                grabbed=self.stats.releases_grabbed,
                failed=self.stats.releases_failed,
                hash_mismatches=self.stats.hash_mismatches,
            )
        return list(zip(unique, outcomes))

    async def grab(self, release: ReleaseRecord) -> ResolutionOutcome:
        """Resolves one release under the worker limit and records the outcome."""
        async with self.semaphore:
            if self.events:
                self.events.grab_started(release)
            started = time.monotonic()

            try:
                outcome = await asyncio.wait_for(
                    self.resolver.resolve(release), timeout=self.config.resolve_timeout
                )
            except asyncio.TimeoutError as e:
                outcome = ResolutionOutcome.failed(
                    Failure(
                        FailureKind.FETCH_FAILED,
                        f"Gave up after {self.config.resolve_timeout:.0f}s",
                        e,
                    )
                )

        await self.stats.record(outcome)
        duration_s = time.monotonic() - started
        name = escape(release.display_name)

        if outcome.ok:
            log.info(f"  [green]✓ Grabbed:[/] {name} [dim]({outcome.info_hash})[/dim]")
            if self.events:
                self.events.grab_completed(release, outcome, duration_s)
        else:
            log.error(f"  [red]✗ Failed:[/] {name} ({escape(outcome.failure.describe())})")
            if self.events:
                self.events.grab_failed(release, outcome.failure, duration_s)

        return outcome
