"""
Shared fixtures: in-memory aiohttp stand-ins, a recording download client and
real torrent files built with torf.
"""

from typing import Any, Dict, List, Optional, Tuple

import pytest
import torf

from torrent_grab.models.outcome import Submission

HASH_A = "0123456789abcdef0123456789abcdef01234567"
HASH_B = "89abcdef0123456789abcdef0123456789abcdef"


def magnet_for(info_hash: str, name: Optional[str] = None) -> str:
    uri = f"magnet:?xt=urn:btih:{info_hash}"
    if name:
        uri += f"&dn={name}"
    return uri


class FakeResponse:
    """Enough of aiohttp.ClientResponse for the fetcher and the qBittorrent client."""

    def __init__(
        self,
        status: int = 200,
        body: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
        reason: str = "",
    ):
        self.status = status
        self.reason = reason
        self.headers = headers or {}
        self._body = body
        self.body_read = False

    async def read(self) -> bytes:
        self.body_read = True
        return self._body

    async def text(self) -> str:
        return self._body.decode("utf-8")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Routes requests to canned responses by URL.

    A route can be a FakeResponse, a list of responses consumed in order, or an
    exception instance to raise.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = dict(routes or {})
        self.requests: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed = False

    def _respond(self, method: str, url: str, **kwargs):
        self.requests.append((method, url, kwargs))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status=404, reason="Not Found")
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, BaseException):
            raise route
        return route

    def get(self, url: str, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self._respond("POST", url, **kwargs)

    async def close(self):
        self.closed = True

    def urls(self, method: Optional[str] = None) -> List[str]:
        return [url for m, url, _ in self.requests if method in (None, m)]


class RecordingBackend:
    """A download client that remembers every call and answers from presets."""

    name = "Recording Client"

    def __init__(
        self,
        magnet_result: Any = None,
        file_result: Any = None,
    ):
        self.magnet_result = magnet_result or Submission.accepted()
        self.file_result = file_result or Submission.accepted()
        self.magnet_calls: List[Tuple[str, str]] = []
        self.file_calls: List[Tuple[str, str, bytes]] = []
        self.closed = False

    async def submit_magnet(self, info_hash, magnet_url, release):
        self.magnet_calls.append((info_hash, magnet_url))
        if isinstance(self.magnet_result, BaseException):
            raise self.magnet_result
        return self.magnet_result

    async def submit_file(self, info_hash, filename, data, release):
        self.file_calls.append((info_hash, filename, data))
        if isinstance(self.file_result, BaseException):
            raise self.file_result
        return self.file_result

    async def close(self):
        self.closed = True


@pytest.fixture
def torrent_file(tmp_path) -> Tuple[bytes, str]:
    """A real single-file torrent as (bencoded bytes, lower-case info-hash)."""
    content = tmp_path / "content" / "episode.mkv"
    content.parent.mkdir()
    content.write_bytes(b"not really a video " * 512)

    torrent = torf.Torrent(
        path=str(content),
        trackers=["http://tracker.example.org/announce"],
        private=True,
    )
    torrent.generate()
    return torrent.dump(), torrent.infohash.lower()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()
