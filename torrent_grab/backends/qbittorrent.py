"""
qBittorrent download client, talking to the qBittorrent Web API v2.
"""

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

import aiohttp

from torrent_grab.exceptions import BackendError
from torrent_grab.models.outcome import Submission
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.torrent.fetcher import TORRENT_CONTENT_TYPE

log = logging.getLogger(__name__)

_OK_RESPONSES = {"ok", "ok."}


class QBittorrentBackend:
    """
    Async client for the parts of the qBittorrent Web API needed to add torrents.

    Authentication uses the SID cookie set by 'auth/login'; a 403 on any call is
    treated as an expired session and triggers one re-login.
    """

    name = "qBittorrent"

    def __init__(
        self,
        url: str,
        username: str = "",
        password: str = "",
        category: str = "",
        savepath: str = "",
        add_paused: bool = False,
        request_timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initializes the client.

        Args:
            url: Base URL of the Web UI, e.g. 'http://localhost:8080'.
            username: Web UI user. Leave empty when the client bypasses auth for
                this host.
            password: Web UI password.
            category: Category assigned to added torrents.
            savepath: Download directory override.
            add_paused: Add torrents in the paused state.
            request_timeout: Total timeout per API call, in seconds.
            session: An existing session to use instead of creating one.
        """
        self.api_url = f"{url.rstrip('/')}/api/v2/"
        self.username = username
        self.password = password
        self.category = category
        self.savepath = savepath
        self.add_paused = add_paused
        self.request_timeout = request_timeout

        self._session = session
        self._owns_session = session is None
        self._logged_in = False
        self._login_lock = asyncio.Lock()

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=4, enable_cleanup_closed=True),
                cookie_jar=aiohttp.CookieJar(unsafe=True),
                timeout=aiohttp.ClientTimeout(total=self.request_timeout, connect=10),
            )
            self._owns_session = True
            self._logged_in = False
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def login(self, force: bool = False) -> None:
        """
        Authenticates against the Web UI.

        Raises:
            BackendError: If the credentials are rejected or the host is banned.
        """
        async with self._login_lock:
            if self._logged_in and not force:
                return
            if not self.username:
                self._logged_in = True
                return

            session = await self._initialize_session()
            log.debug(f"Authenticating with qBittorrent as '{self.username}'")
            async with session.post(
                f"{self.api_url}auth/login",
                data={"username": self.username, "password": self.password},
            ) as r:
                text = (await r.text()).strip()
                if r.status == 403:
                    raise BackendError(
                        "qBittorrent refused the login: too many failed attempts, "
                        "this IP is banned."
                    )
                if r.status != 200 or text.lower() not in _OK_RESPONSES:
                    raise BackendError(
                        f"qBittorrent login failed ({r.status}): {text or 'no response'}"
                    )
            self._logged_in = True

    async def _post(
        self, endpoint: str, build_data: Callable[[], Any]
    ) -> Tuple[int, str]:
        """
        Posts to an API endpoint, logging in first and once more on a 403.

        `build_data` is called for every attempt, since multipart bodies cannot be
        sent twice.
        """
        await self.login()
        session = await self._initialize_session()
        url = f"{self.api_url}{endpoint}"

        async with session.post(url, data=build_data()) as r:
            status, text = r.status, await r.text()

        if status == 403:
            log.debug("qBittorrent session cookie expired, re-authenticating")
            await self.login(force=True)
            async with session.post(url, data=build_data()) as r:
                status, text = r.status, await r.text()

        return status, text

    def _add_options(self) -> dict[str, str]:
        options = {}
        if self.category:
            options["category"] = self.category
        if self.savepath:
            options["savepath"] = self.savepath
        if self.add_paused:
            options["paused"] = "true"
            options["stopped"] = "true"
        return options

    async def _add(
        self, info_hash: str, build_data: Callable[[], Any], release: ReleaseRecord
    ) -> Submission:
        try:
            status, text = await self._post("torrents/add", build_data)
        except BackendError as e:
            return Submission.rejected(str(e), e)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return Submission.rejected(
                f"Could not reach qBittorrent at {self.api_url}", e
            )

        text = text.strip()
        if status == 200 and text.lower() in _OK_RESPONSES:
            log.debug(f"qBittorrent accepted '{release.display_name}' ({info_hash})")
            return Submission.accepted(info_hash.lower())
        if status == 415:
            return Submission.rejected("qBittorrent reports the torrent file is not valid")
        return Submission.rejected(
            f"qBittorrent refused the torrent ({status}): {text or 'no response'}"
        )

    async def submit_magnet(
        self, info_hash: str, magnet_url: str, release: ReleaseRecord
    ) -> Submission:
        options = self._add_options()
        return await self._add(
            info_hash, lambda: {"urls": magnet_url, **options}, release
        )

    async def submit_file(
        self, info_hash: str, filename: str, data: bytes, release: ReleaseRecord
    ) -> Submission:
        options = self._add_options()

        def build_form() -> aiohttp.FormData:
            form = aiohttp.FormData()
            for key, value in options.items():
                form.add_field(key, value)
            form.add_field(
                "torrents", data, filename=filename, content_type=TORRENT_CONTENT_TYPE
            )
            return form

        return await self._add(info_hash, build_form, release)
