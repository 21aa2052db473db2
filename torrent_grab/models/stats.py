"""
Dataclass for tracking grab session statistics.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field

from .outcome import ResolutionOutcome


@dataclass
class GrabStats:
    """Tracks statistics for a grab session."""

    releases_grabbed: int = 0
    releases_failed: int = 0
    duplicates_skipped: int = 0
    grabbed_via_magnet: int = 0
    grabbed_via_torrent: int = 0
    hash_mismatches: int = 0
    failures_by_kind: Counter = field(default_factory=Counter)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def record(self, outcome: ResolutionOutcome) -> None:
        """Adds one resolution outcome to the counters. Safe to call concurrently."""
        async with self._lock:
            if not outcome.ok:
                self.releases_failed += 1
                self.failures_by_kind[outcome.failure.kind.value] += 1
                return

            self.releases_grabbed += 1
            if outcome.via_magnet:
                self.grabbed_via_magnet += 1
            else:
                self.grabbed_via_torrent += 1
            if outcome.hash_mismatch is not None:
                self.hash_mismatches += 1

    @property
    def total(self) -> int:
        return self.releases_grabbed + self.releases_failed
