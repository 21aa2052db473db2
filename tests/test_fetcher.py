"""Tests for the redirect-walking torrent fetcher."""

import asyncio

import aiohttp
import pytest
from conftest import HASH_A, FakeResponse, FakeSession, magnet_for

from torrent_grab.models.outcome import Failure, FailureKind
from torrent_grab.models.release import MagnetRedirect, TorrentPayload
from torrent_grab.torrent.fetcher import TORRENT_CONTENT_TYPE, TorrentFetcher

URL = "https://indexer.example.org/download/1"


def make_fetcher(routes, **kwargs):
    session = FakeSession(routes)
    return TorrentFetcher(session=session, **kwargs), session


def redirect(location, status=302):
    headers = {"Location": location} if location is not None else {}
    return FakeResponse(status=status, headers=headers, reason="Found")


@pytest.mark.asyncio
async def test_successful_download_returns_payload(torrent_file):
    data, _ = torrent_file
    fetcher, session = make_fetcher({URL: FakeResponse(200, data)})

    result = await fetcher.fetch(URL, "Some Show: S01E01")

    assert isinstance(result, TorrentPayload)
    assert result.data == data
    assert result.source_url == URL
    assert result.filename.endswith(".torrent")
    assert ":" not in result.filename

    _, _, kwargs = session.requests[0]
    assert kwargs["allow_redirects"] is False
    assert kwargs["headers"]["Accept"] == TORRENT_CONTENT_TYPE
    assert "torrent-grab" in kwargs["headers"]["User-Agent"]


@pytest.mark.asyncio
async def test_custom_user_agent_is_sent():
    fetcher, session = make_fetcher(
        {URL: FakeResponse(200, b"d4:infod4:name1:aee")}, user_agent="grabber/1.0"
    )

    await fetcher.fetch(URL, "x")

    assert session.requests[0][2]["headers"]["User-Agent"] == "grabber/1.0"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [301, 302, 303, 307, 308])
async def test_follows_redirect_statuses(status):
    target = "https://cdn.example.org/file.torrent"
    fetcher, session = make_fetcher(
        {URL: redirect(target, status), target: FakeResponse(200, b"d1:ai1ee")}
    )

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, TorrentPayload)
    assert result.source_url == target
    assert session.urls() == [URL, target]


@pytest.mark.asyncio
async def test_relative_location_is_resolved_against_request_url():
    target = "https://indexer.example.org/files/1.torrent"
    fetcher, session = make_fetcher(
        {URL: redirect("/files/1.torrent"), target: FakeResponse(200, b"d1:ai1ee")}
    )

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, TorrentPayload)
    assert session.urls() == [URL, target]


@pytest.mark.asyncio
async def test_redirect_to_magnet_is_returned_without_fetching():
    magnet = magnet_for(HASH_A)
    fetcher, session = make_fetcher({URL: redirect(magnet)})

    result = await fetcher.fetch(URL, "x")

    assert result == MagnetRedirect(magnet_url=magnet, source_url=URL)
    assert session.urls() == [URL]


@pytest.mark.asyncio
async def test_redirect_body_is_never_read():
    response = redirect("magnet:?xt=urn:btih:" + HASH_A)
    fetcher, _ = make_fetcher({URL: response})

    await fetcher.fetch(URL, "x")

    assert response.body_read is False


@pytest.mark.asyncio
async def test_redirect_without_location_is_a_protocol_error():
    fetcher, _ = make_fetcher({URL: redirect(None)})

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.PROTOCOL_ERROR
    assert "without providing a location" in result.message


@pytest.mark.asyncio
async def test_redirect_loop_stops_at_the_hop_limit():
    other = "https://indexer.example.org/download/2"
    fetcher, session = make_fetcher(
        {URL: redirect(other), other: redirect(URL)}, max_redirects=3
    )

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.PROTOCOL_ERROR
    assert len(session.requests) == 4


@pytest.mark.asyncio
async def test_explicit_redirect_budget_overrides_default():
    target = "https://cdn.example.org/file.torrent"
    fetcher, _ = make_fetcher({URL: redirect(target), target: FakeResponse(200, b"d1:ai1ee")})

    result = await fetcher.fetch(URL, "x", redirects_remaining=0)

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.PROTOCOL_ERROR


@pytest.mark.asyncio
async def test_http_error_status_is_a_fetch_failure():
    fetcher, _ = make_fetcher({})

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.FETCH_FAILED
    assert "404" in result.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [aiohttp.ClientConnectionError("connection reset"), asyncio.TimeoutError()],
)
async def test_transport_errors_are_fetch_failures(error):
    fetcher, _ = make_fetcher({URL: error})

    result = await fetcher.fetch(URL, "x")

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.FETCH_FAILED
    assert result.cause is error


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed():
    fetcher, _ = make_fetcher({URL: asyncio.CancelledError()})

    with pytest.raises(asyncio.CancelledError):
        await fetcher.fetch(URL, "x")
