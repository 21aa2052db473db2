"""
Result values returned by the parser, fetcher, backends and resolver.

Fallback decisions in the resolver depend on these classifications, so they are
passed around as plain values instead of being raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union

from torrent_grab import exceptions


class FailureKind(Enum):
    """Classification of everything that can go wrong while grabbing a release."""

    MALFORMED_LOCATOR = "malformed_locator"
    PROTOCOL_ERROR = "protocol_error"
    FETCH_FAILED = "fetch_failed"
    CAPABILITY_UNSUPPORTED = "capability_unsupported"
    UNSUPPORTED_PROTOCOL = "unsupported_protocol"
    DOWNLOAD_FAILED = "download_failed"
    NO_USABLE_LOCATOR = "no_usable_locator"
    INVALID_TORRENT = "invalid_torrent"
    SUBMISSION_FAILED = "submission_failed"


_EXCEPTION_MAP = {
    FailureKind.MALFORMED_LOCATOR: exceptions.MalformedLocatorError,
    FailureKind.PROTOCOL_ERROR: exceptions.ProtocolViolationError,
    FailureKind.FETCH_FAILED: exceptions.FetchFailedError,
    FailureKind.CAPABILITY_UNSUPPORTED: exceptions.CapabilityUnsupportedError,
    FailureKind.UNSUPPORTED_PROTOCOL: exceptions.UnsupportedProtocolError,
    FailureKind.DOWNLOAD_FAILED: exceptions.DownloadFailedError,
    FailureKind.NO_USABLE_LOCATOR: exceptions.NoUsableLocatorError,
    FailureKind.INVALID_TORRENT: exceptions.InvalidTorrentError,
    FailureKind.SUBMISSION_FAILED: exceptions.SubmissionFailedError,
}


def hashes_match(first: Optional[str], second: Optional[str]) -> bool:
    """Info-hashes are hex strings and compare case-insensitively."""
    if first is None or second is None:
        return False
    return first.strip().lower() == second.strip().lower()


@dataclass(frozen=True)
class Failure:
    """A classified failure, optionally caused by another failure or exception."""

    kind: FailureKind
    message: str
    cause: Union["Failure", BaseException, None] = None

    def chain(self) -> Iterator["Failure"]:
        """Yields this failure followed by every nested failure cause."""
        current: Optional[Failure] = self
        while current is not None:
            yield current
            current = current.cause if isinstance(current.cause, Failure) else None

    def has_kind(self, kind: FailureKind) -> bool:
        return any(failure.kind is kind for failure in self.chain())

    @property
    def root(self) -> "Failure":
        *_, last = self.chain()
        return last

    def describe(self) -> str:
        """Renders the whole chain, e.g. 'Downloading torrent failed: HTTP 404'."""
        parts = [failure.message for failure in self.chain()]
        root_cause = self.root.cause
        if isinstance(root_cause, BaseException) and str(root_cause):
            parts.append(str(root_cause))
        return ": ".join(dict.fromkeys(parts))

    def to_exception(self) -> exceptions.TorrentGrabError:
        """Converts the chain into the matching exceptions, linked via __cause__."""
        cause = self.cause
        if isinstance(cause, Failure):
            cause = cause.to_exception()
        error = _EXCEPTION_MAP[self.kind](self.message)
        error.__cause__ = cause
        return error

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.describe()}"


@dataclass(frozen=True)
class Submission:
    """A download client's answer to a magnet or torrent-file submission."""

    info_hash: Optional[str] = None
    failure: Optional[Failure] = None

    @classmethod
    def accepted(cls, info_hash: Optional[str] = None) -> "Submission":
        return cls(info_hash=info_hash or None)

    @classmethod
    def unsupported(cls, reason: str) -> "Submission":
        return cls(failure=Failure(FailureKind.CAPABILITY_UNSUPPORTED, reason))

    @classmethod
    def rejected(
        cls, reason: str, cause: Optional[BaseException] = None
    ) -> "Submission":
        return cls(failure=Failure(FailureKind.SUBMISSION_FAILED, reason, cause))

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def is_unsupported(self) -> bool:
        return (
            self.failure is not None
            and self.failure.kind is FailureKind.CAPABILITY_UNSUPPORTED
        )


@dataclass(frozen=True)
class HashMismatch:
    """A download client registered a different info-hash than computed locally."""

    title: str
    locator: str
    expected: str
    reported: str


@dataclass(frozen=True)
class ResolutionOutcome:
    """Either the info-hash to track a grabbed release by, or why it failed."""

    info_hash: Optional[str] = None
    failure: Optional[Failure] = None
    hash_mismatch: Optional[HashMismatch] = None
    via_magnet: bool = False

    @classmethod
    def success(
        cls,
        info_hash: str,
        hash_mismatch: Optional[HashMismatch] = None,
        via_magnet: bool = False,
    ) -> "ResolutionOutcome":
        return cls(info_hash=info_hash, hash_mismatch=hash_mismatch, via_magnet=via_magnet)

    @classmethod
    def failed(cls, failure: Failure) -> "ResolutionOutcome":
        return cls(failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> str:
        """Returns the info-hash or raises the exception matching the failure."""
        if self.failure is not None:
            raise self.failure.to_exception()
        return self.info_hash
