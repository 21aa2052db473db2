"""
Parses magnet URIs into info-hashes.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

import torf

from torrent_grab.models.outcome import Failure, FailureKind

log = logging.getLogger(__name__)

MAGNET_SCHEME = "magnet:"

_HEX_HASH = re.compile(r"^[0-9a-fA-F]{40}$")
_BASE32_HASH = re.compile(r"^[A-Za-z2-7]{32}$")


@dataclass(frozen=True)
class ParsedMagnet:
    """The parts of a magnet URI the resolver and backends care about."""

    info_hash: str
    uri: str
    display_name: Optional[str] = None
    trackers: tuple[str, ...] = field(default_factory=tuple)


def is_magnet(value: Optional[str]) -> bool:
    """Returns True if the string uses the magnet URI scheme."""
    return bool(value) and value.strip().lower().startswith(MAGNET_SCHEME)


def normalize_info_hash(value: str) -> Optional[str]:
    """
    Converts an info-hash to 40-character lower-case hex.

    Magnet links may carry the hash in base32 (32 chars) instead of hex.
    Returns None if the value is neither.
    """
    value = (value or "").strip()
    if _HEX_HASH.match(value):
        return value.lower()
    if _BASE32_HASH.match(value):
        try:
            return base64.b32decode(value.upper()).hex()
        except binascii.Error:
            return None
    return None


def parse_magnet(uri: object) -> Union[ParsedMagnet, Failure]:
    """
    Parses a magnet URI.

    Never raises for bad input: anything that is not a well-formed magnet link
    with a BitTorrent exact topic ('xt=urn:btih:...') yields a MALFORMED_LOCATOR
    failure.
    """
    if not isinstance(uri, str) or not uri.strip():
        return Failure(FailureKind.MALFORMED_LOCATOR, "Magnet link is empty")

    uri = uri.strip()
    if not is_magnet(uri):
        return Failure(
            FailureKind.MALFORMED_LOCATOR, f"Not a magnet link: '{uri[:60]}'"
        )

    try:
        magnet = torf.Magnet.from_string(uri)
    except (torf.TorfError, ValueError) as e:
        log.debug(f"Failed to parse magnet link '{uri}': {e}")
        return Failure(
            FailureKind.MALFORMED_LOCATOR, f"Failed to parse magnet link: {e}", e
        )

    info_hash = normalize_info_hash(magnet.infohash)
    if info_hash is None:
        return Failure(
            FailureKind.MALFORMED_LOCATOR,
            f"Magnet link has an invalid info-hash: '{magnet.infohash}'",
        )

    return ParsedMagnet(
        info_hash=info_hash,
        uri=uri,
        display_name=magnet.dn or None,
        trackers=tuple(str(tracker) for tracker in (magnet.tr or ())),
    )
