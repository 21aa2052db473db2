"""
Utilities for turning release titles into safe file names.
"""

import re

from pathvalidate import sanitize_filename

_WHITESPACE = re.compile(r"\s+")
FALLBACK_NAME = "release"


def clean_file_name(title: str) -> str:
    """
    Sanitizes a release title so it can be used as a file name on any platform.

    Characters that are invalid on Windows or POSIX are removed and runs of
    whitespace are collapsed, e.g. 'Show: S01E01 / 1080p' -> 'Show S01E01 1080p'.
    """
    cleaned = sanitize_filename(title or "", platform="universal")
    cleaned = _WHITESPACE.sub(" ", cleaned).strip(" .")
    return cleaned or FALLBACK_NAME


def torrent_file_name(title: str) -> str:
    """Builds the `.torrent` file name a download client receives for a release."""
    return f"{clean_file_name(title)}.torrent"
