"""
Defines custom exceptions for the application to allow for more specific error handling.

Resolution itself reports failures as values (see `torrent_grab.models.outcome`);
these exceptions are raised at the edges, when an outcome is unwrapped or when
configuration cannot be loaded.
"""


class TorrentGrabError(Exception):
    """Base exception for all application-specific errors."""

    kind = None


class ConfigurationError(TorrentGrabError):
    """Raised for issues related to configuration loading or validation."""


class BackendError(TorrentGrabError):
    """Raised when a download client cannot be reached or authenticated."""


class MalformedLocatorError(TorrentGrabError):
    """Raised when a magnet or torrent locator cannot be interpreted."""

    kind = "malformed_locator"


class ProtocolViolationError(TorrentGrabError):
    """
    Raised when a remote server violates the expected HTTP contract, e.g. a
    redirect without a location or an endless redirect chain.
    """

    kind = "protocol_error"


class FetchFailedError(TorrentGrabError):
    """Raised when the torrent file could not be retrieved over HTTP."""

    kind = "fetch_failed"


class CapabilityUnsupportedError(TorrentGrabError):
    """Raised when a download client rejects the attempted protocol."""

    kind = "capability_unsupported"


class UnsupportedProtocolError(TorrentGrabError):
    """Raised when a protocol was rejected and no fallback locator remains."""

    kind = "unsupported_protocol"


class DownloadFailedError(TorrentGrabError):
    """Raised for a terminal failure while grabbing a release."""

    kind = "download_failed"


class NoUsableLocatorError(TorrentGrabError):
    """Raised when a release carries neither a magnet nor an HTTP locator."""

    kind = "no_usable_locator"


class InvalidTorrentError(TorrentGrabError):
    """Raised when fetched bytes are not valid torrent metainfo."""

    kind = "invalid_torrent"


class SubmissionFailedError(TorrentGrabError):
    """Raised when a download client refuses or fails to add a torrent."""

    kind = "submission_failed"
