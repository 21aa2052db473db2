"""
Torrent Layer.

This package turns locators into something a download client can accept:
magnet parsing, `.torrent` retrieval over HTTP and info-hash computation.
"""

from .fetcher import TorrentFetcher, close_http_session, get_http_session
from .magnet import ParsedMagnet, is_magnet, normalize_info_hash, parse_magnet
from .metainfo import TorrentInfoReader

__all__ = [
    "ParsedMagnet",
    "TorrentFetcher",
    "TorrentInfoReader",
    "close_http_session",
    "get_http_session",
    "is_magnet",
    "normalize_info_hash",
    "parse_magnet",
]
