"""
Retrieves `.torrent` files over HTTP, walking redirect chains by hand so that a
redirect to a magnet link can be detected and handed back to the resolver.
"""

import asyncio
import logging
from typing import Optional, Union
from urllib.parse import urljoin

import aiohttp

from torrent_grab import __version__
from torrent_grab.models.config import DEFAULT_USER_AGENT
from torrent_grab.models.outcome import Failure, FailureKind
from torrent_grab.models.release import MagnetRedirect, TorrentPayload
from torrent_grab.utils.path import torrent_file_name

from .magnet import is_magnet

log = logging.getLogger(__name__)

TORRENT_CONTENT_TYPE = "application/x-bittorrent"
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
DEFAULT_MAX_REDIRECTS = 5

FetchResult = Union[TorrentPayload, MagnetRedirect, Failure]

_http_session: aiohttp.ClientSession | None = None
_session_lock = asyncio.Lock()


async def get_http_session(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Gets or creates the shared aiohttp ClientSession used for torrent downloads.

    Only one connection pool is created for the lifetime of the application run.

    Args:
        max_workers: Maximum concurrent resolutions (should match config.max_workers).
    """
    global _http_session
    async with _session_lock:
        if _http_session and not _http_session.closed:
            return _http_session

        connector = aiohttp.TCPConnector(
            limit=max_workers * 2,
            limit_per_host=max_workers,
            ttl_dns_cache=300,
            enable_cleanup_closed=True,
        )
        _http_session = aiohttp.ClientSession(connector=connector)
        log.debug(f"Created torrent download pool with limit_per_host={max_workers}")

    return _http_session


async def close_http_session() -> None:
    """Closes the shared connection pool."""
    global _http_session
    async with _session_lock:
        if _http_session and not _http_session.closed:
            await _http_session.close()
            _http_session = None
            log.debug("Shared torrent download pool closed.")


class TorrentFetcher:
    """Downloads torrent files without letting aiohttp follow redirects on its own."""

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        request_timeout: float = 30.0,
        user_agent: str | None = None,
        max_workers: int = 4,
    ):
        self._session = session
        self.max_redirects = max_redirects
        self.request_timeout = request_timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT.format(version=__version__)
        self.max_workers = max_workers

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        return await get_http_session(self.max_workers)

    async def fetch(
        self, url: str, title: str, redirects_remaining: Optional[int] = None
    ) -> FetchResult:
        """
        Fetches a torrent file, following at most `redirects_remaining` redirects.

        Returns:
            The payload on a 2xx response, a MagnetRedirect if a redirect points
            at a magnet link, or a PROTOCOL_ERROR / FETCH_FAILED failure.
        """
        if redirects_remaining is None:
            redirects_remaining = self.max_redirects

        headers = {"Accept": TORRENT_CONTENT_TYPE, "User-Agent": self.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        try:
            session = await self._get_session()
            async with session.get(
                url, headers=headers, allow_redirects=False, timeout=timeout
            ) as response:
                status = response.status
                reason = response.reason or ""
                location = response.headers.get("Location")
                # Redirect bodies are never read.
                data = None
                if 200 <= status < 300:
                    data = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.debug(f"Downloading torrent from '{url}' failed: {e!r}")
            return Failure(
                FailureKind.FETCH_FAILED,
                f"Request to '{url}' failed ({type(e).__name__})",
                e,
            )

        if status in REDIRECT_STATUSES:
            log.debug(f"Torrent request is being redirected to: {location}")
            return await self._follow_redirect(url, location, title, redirects_remaining)

        if data is None:
            return Failure(
                FailureKind.FETCH_FAILED,
                f"HTTP {status} {reason}".rstrip() + f" while downloading '{url}'",
            )

        log.debug(
            f"Downloading torrent for '{title}' finished ({len(data)} bytes from {url})"
        )
        return TorrentPayload(
            filename=torrent_file_name(title), data=data, source_url=url
        )

    async def _follow_redirect(
        self,
        url: str,
        location: Optional[str],
        title: str,
        redirects_remaining: int,
    ) -> FetchResult:
        if not location:
            return Failure(
                FailureKind.PROTOCOL_ERROR,
                f"Remote website '{url}' tried to redirect without providing a location.",
            )

        if is_magnet(location):
            return MagnetRedirect(magnet_url=location.strip(), source_url=url)

        if redirects_remaining <= 0:
            return Failure(
                FailureKind.PROTOCOL_ERROR,
                f"Too many redirects while downloading torrent (last: '{url}').",
            )

        return await self.fetch(urljoin(url, location), title, redirects_remaining - 1)
