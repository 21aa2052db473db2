"""
Decides how a release is handed to the download client: magnet link or
`.torrent` file, in which order, with which fallback, and whether the client
registered the info-hash we expected.
"""

import logging
from typing import Awaitable, Optional, Tuple

from torrent_grab.backends.base import TorrentBackend
from torrent_grab.models.outcome import (
    Failure,
    FailureKind,
    HashMismatch,
    ResolutionOutcome,
    Submission,
    hashes_match,
)
from torrent_grab.models.release import MagnetRedirect, ReleaseRecord
from torrent_grab.torrent.fetcher import TorrentFetcher
from torrent_grab.torrent.magnet import is_magnet, parse_magnet
from torrent_grab.torrent.metainfo import TorrentInfoReader

log = logging.getLogger(__name__)


def select_locators(release: ReleaseRecord) -> Tuple[Optional[str], Optional[str]]:
    """
    Splits a release into its magnet candidate and its torrent-file URL.

    A download URL that is itself a magnet link counts as the magnet candidate;
    an explicit magnet override wins over it.
    """
    magnet_url = None
    torrent_url = None

    download_url = (release.download_url or "").strip()
    if is_magnet(download_url):
        magnet_url = download_url
    elif download_url.lower().startswith(("http://", "https://")):
        torrent_url = download_url
    elif download_url:
        log.debug(
            f"Ignoring unsupported download URL for '{release.display_name}': "
            f"{download_url[:60]}"
        )

    if release.magnet_url and release.magnet_url.strip():
        magnet_url = release.magnet_url.strip()

    return magnet_url, torrent_url


class AcquisitionResolver:
    """
    Resolves one release at a time into an info-hash.

    Holds no per-release state, so a single instance can serve any number of
    concurrent resolutions.
    """

    def __init__(self, backend: TorrentBackend, fetcher: TorrentFetcher):
        self.backend = backend
        self.fetcher = fetcher

    async def resolve(self, release: ReleaseRecord) -> ResolutionOutcome:
        """
        Hands a release to the download client.

        Magnet links are tried first. A malformed magnet, or a client that does
        not take magnets, falls back to the torrent URL when there is one.
        Failures on the torrent URL are terminal.
        """
        magnet_url, torrent_url = select_locators(release)

        if not magnet_url and not torrent_url:
            return ResolutionOutcome.failed(
                Failure(
                    FailureKind.NO_USABLE_LOCATOR,
                    f"Release '{release.display_name}' has no magnet link or torrent URL",
                )
            )

        if magnet_url:
            outcome = await self._grab_magnet(
                release, magnet_url, can_fall_back=torrent_url is not None
            )
            if outcome is not None:
                return outcome

        return await self._grab_torrent_file(release, torrent_url)

    async def _grab_magnet(
        self, release: ReleaseRecord, magnet_url: str, can_fall_back: bool
    ) -> Optional[ResolutionOutcome]:
        """
        Submits a magnet link. Returns None when the caller should fall back to
        the torrent URL.
        """
        parsed = parse_magnet(magnet_url)
        if isinstance(parsed, Failure):
            if can_fall_back:
                log.debug(
                    f"Failed to parse magnet link for '{release.display_name}', "
                    f"trying torrent file. ({parsed.message})"
                )
                return None
            log.error(
                f"Failed to parse magnet link for '{release.display_name}': "
                f"'{magnet_url}'"
            )
            return ResolutionOutcome.failed(parsed)

        submission = await self._submit(
            self.backend.submit_magnet(parsed.info_hash, magnet_url, release)
        )

        if submission.is_unsupported:
            if can_fall_back:
                log.debug(
                    f"Magnet not supported by download client, trying torrent. "
                    f"({submission.failure.message})"
                )
                return None
            return ResolutionOutcome.failed(
                Failure(
                    FailureKind.UNSUPPORTED_PROTOCOL,
                    f"Magnet not supported by download client {self.backend.name}",
                    submission.failure,
                )
            )

        if not submission.ok:
            log.error(
                f"{self.backend.name} failed to add magnet for "
                f"'{release.display_name}': {submission.failure.describe()}"
            )
            return ResolutionOutcome.failed(
                Failure(
                    FailureKind.DOWNLOAD_FAILED,
                    "Adding magnet link failed",
                    submission.failure,
                )
            )

        return self._reconcile(
            release, magnet_url, parsed.info_hash, submission, via_magnet=True
        )

    async def _grab_torrent_file(
        self, release: ReleaseRecord, torrent_url: str
    ) -> ResolutionOutcome:
        result = await self.fetcher.fetch(torrent_url, release.title)

        if isinstance(result, MagnetRedirect):
            log.debug(
                f"Torrent URL for '{release.display_name}' redirected to a magnet link"
            )
            return await self._grab_magnet(
                release, result.magnet_url, can_fall_back=False
            )

        if isinstance(result, Failure):
            log.error(
                f"Downloading torrent file for release '{release.display_name}' "
                f"failed ({torrent_url}): {result.describe()}"
            )
            return ResolutionOutcome.failed(
                Failure(FailureKind.DOWNLOAD_FAILED, "Downloading torrent failed", result)
            )

        info_hash = TorrentInfoReader.get_info_hash(result.data)
        if isinstance(info_hash, Failure):
            log.error(
                f"Torrent file for release '{release.display_name}' is invalid "
                f"({torrent_url}): {info_hash.message}"
            )
            return ResolutionOutcome.failed(
                Failure(FailureKind.DOWNLOAD_FAILED, "Downloading torrent failed", info_hash)
            )

        submission = await self._submit(
            self.backend.submit_file(info_hash, result.filename, result.data, release)
        )
        if not submission.ok:
            log.error(
                f"{self.backend.name} failed to add torrent file for "
                f"'{release.display_name}': {submission.failure.describe()}"
            )
            return ResolutionOutcome.failed(
                Failure(
                    FailureKind.DOWNLOAD_FAILED,
                    "Adding torrent file failed",
                    submission.failure,
                )
            )

        return self._reconcile(release, torrent_url, info_hash, submission)

    async def _submit(self, call: Awaitable[Submission]) -> Submission:
        """Turns anything a backend raises into a rejected submission."""
        try:
            return await call
        except Exception as e:
            log.debug(f"{self.backend.name} raised during submission", exc_info=True)
            return Submission.rejected(
                f"{self.backend.name} raised {type(e).__name__}: {e}", e
            )

    def _reconcile(
        self,
        release: ReleaseRecord,
        locator: str,
        expected_hash: str,
        submission: Submission,
        via_magnet: bool = False,
    ) -> ResolutionOutcome:
        """
        Compares the client's info-hash with ours. The client's value is the one
        the download will be tracked by.
        """
        reported = (submission.info_hash or "").strip()
        if not reported:
            return ResolutionOutcome.success(expected_hash, via_magnet=via_magnet)

        mismatch = None
        if not hashes_match(expected_hash, reported):
            mismatch = HashMismatch(
                title=release.display_name,
                locator=locator,
                expected=expected_hash,
                reported=reported,
            )
            log.warning(
                f"[yellow]{self.backend.name} did not return the expected info-hash "
                f"for '{release.display_name}' ({locator}): expected {expected_hash}, "
                f"got {reported}. The download may not be tracked correctly.[/yellow]"
            )

        return ResolutionOutcome.success(
            reported, hash_mismatch=mismatch, via_magnet=via_magnet
        )
