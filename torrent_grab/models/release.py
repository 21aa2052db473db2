"""
Immutable value types describing a release and the artifacts fetched for it.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ReleaseRecord:
    """One discoverable item, as produced by an indexer search."""

    title: str
    download_url: str = ""
    magnet_url: Optional[str] = None
    indexer: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReleaseRecord":
        """
        Builds a release from a JSON mapping, accepting both snake_case and
        the camelCase keys indexer APIs tend to emit.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Release entry must be an object, got {type(data).__name__}.")

        download_url = (
            data.get("download_url") or data.get("downloadUrl") or data.get("url") or ""
        )
        magnet_url = data.get("magnet_url") or data.get("magnetUrl")
        size = data.get("size")
        indexer = data.get("indexer")
        if indexer is not None and not isinstance(indexer, (str, int)):
            raise ValueError(
                f"'indexer' must be a name, got {type(indexer).__name__}."
            )

        return cls(
            title=str(data.get("title") or "").strip(),
            download_url=str(download_url).strip(),
            magnet_url=str(magnet_url).strip() if magnet_url else None,
            indexer=str(indexer).strip() if indexer is not None else None,
            size=int(size) if size is not None else None,
        )

    @property
    def display_name(self) -> str:
        return self.title or "Unknown Release"


@dataclass(frozen=True)
class TorrentPayload:
    """The raw bytes of a fetched `.torrent` file."""

    filename: str
    data: bytes
    source_url: str

    def __repr__(self) -> str:
        return (
            f"TorrentPayload(filename={self.filename!r}, size={len(self.data)}, "
            f"source_url={self.source_url!r})"
        )


@dataclass(frozen=True)
class MagnetRedirect:
    """A torrent URL that redirected to a magnet locator."""

    magnet_url: str
    source_url: str
