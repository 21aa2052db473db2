"""
Reads info-hashes from downloaded torrent metainfo.
"""

import io
import logging
from typing import Union

import torf

from torrent_grab.models.outcome import Failure, FailureKind

log = logging.getLogger(__name__)


class TorrentInfoReader:
    """A collection of static methods for inspecting `.torrent` payloads."""

    @staticmethod
    def get_info_hash(data: bytes) -> Union[str, Failure]:
        """
        Computes the info-hash of a torrent file.

        The hash is the SHA-1 of the bencoded 'info' dictionary, so the same bytes
        always produce the same hash.

        Args:
            data: Raw bytes of a `.torrent` file.

        Returns:
            The lower-case hex info-hash, or an INVALID_TORRENT failure.
        """
        if not data:
            return Failure(FailureKind.INVALID_TORRENT, "Torrent file is empty")

        # Damaged bencoded keys can make torf raise plain built-in exceptions.
        try:
            torrent = torf.Torrent.read_stream(io.BytesIO(data))
            return torrent.infohash.lower()
        except (
            torf.TorfError, TypeError, ValueError, KeyError, IndexError, AttributeError
        ) as e:
            log.debug(
                f"Unable to read torrent metainfo ({len(data)} bytes, "
                f"bencoded={TorrentInfoReader.looks_like_torrent(data)}): {e!r}"
            )
            return Failure(
                FailureKind.INVALID_TORRENT, f"Invalid torrent file: {e}", e
            )

    @staticmethod
    def looks_like_torrent(data: bytes) -> bool:
        """Cheap check that the payload is a bencoded dictionary."""
        return data[:1] == b"d" and data[-1:] == b"e"
