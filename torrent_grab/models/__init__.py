"""
Data Models Layer.

This package contains the value types passed between the resolver, the fetcher
and the download clients, plus the Pydantic configuration model.
"""

from .config import GrabConfig
from .outcome import (
    Failure,
    FailureKind,
    HashMismatch,
    ResolutionOutcome,
    Submission,
)
from .release import MagnetRedirect, ReleaseRecord, TorrentPayload
from .stats import GrabStats

__all__ = [
    "Failure",
    "FailureKind",
    "GrabConfig",
    "GrabStats",
    "HashMismatch",
    "MagnetRedirect",
    "ReleaseRecord",
    "ResolutionOutcome",
    "Submission",
    "TorrentPayload",
]
