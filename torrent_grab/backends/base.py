"""
The capability every download client integration provides.
"""

from typing import Protocol, runtime_checkable

from torrent_grab.models.outcome import Submission
from torrent_grab.models.release import ReleaseRecord


@runtime_checkable
class TorrentBackend(Protocol):
    """
    A download client that can be handed a magnet link or a `.torrent` file.

    Both operations return a Submission instead of raising: a client that cannot
    take magnet links answers `Submission.unsupported(...)`, which lets the
    resolver fall back to the torrent file.
    """

    name: str

    async def submit_magnet(
        self, info_hash: str, magnet_url: str, release: ReleaseRecord
    ) -> Submission:
        """Adds a magnet link; returns the info-hash the client registered."""
        ...

    async def submit_file(
        self, info_hash: str, filename: str, data: bytes, release: ReleaseRecord
    ) -> Submission:
        """Adds a `.torrent` file; returns the info-hash the client registered."""
        ...

    async def close(self) -> None:
        """Releases any connections held by the client."""
        ...
