"""Tests for the JSON lines event log."""

import json
import logging

from conftest import HASH_A, HASH_B

from torrent_grab.models.outcome import HashMismatch, ResolutionOutcome
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.utils.structured_logger import (
    StructuredLogger,
    create_structured_logger,
)


def read_events(log_dir):
    [path] = list(log_dir.glob("torrent_grab_*.jsonl"))
    return [json.loads(line) for line in path.read_text().splitlines()]


def test_events_are_written_as_json_lines(tmp_path):
    base, grab, session = create_structured_logger(tmp_path, enable_json=True)
    release = ReleaseRecord("Show", "https://x.org/1")
    mismatch = HashMismatch("Show", "https://x.org/1", HASH_A, HASH_B)

    session.session_started(total_releases=1, backend="blackhole", max_workers=2)
    grab.grab_completed(
        release, ResolutionOutcome.success(HASH_B, hash_mismatch=mismatch), 0.1234
    )
    base.close()

    events = read_events(tmp_path)
    assert [e["event"] for e in events] == [
        "session_started",
        "release_grabbed",
        "release_hash_mismatch",
    ]
    assert events[1]["info_hash"] == HASH_B
    assert events[1]["duration_s"] == 0.12
    assert events[2]["expected"] == HASH_A
    assert len({e["session_id"] for e in events}) == 1


def test_json_disabled_without_directory(caplog):
    logger = StructuredLogger("torrent_grab.test", log_dir=None)

    with caplog.at_level(logging.INFO, logger="torrent_grab.test"):
        logger.info("something_happened", count=3)

    assert logger.enable_json is False
    assert "something_happened: count=3" in caplog.text


def test_context_manager_closes_file(tmp_path):
    with StructuredLogger("torrent_grab.test", log_dir=tmp_path) as logger:
        logger.warning("first")
    logger.warning("after_close")

    events = read_events(tmp_path)
    assert [e["event"] for e in events] == ["first"]
    assert events[0]["level"] == "WARNING"
