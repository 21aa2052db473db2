"""
Watch-folder download client: drops `.torrent` files into a directory that a
torrent client monitors.
"""

import asyncio
import logging
import os
from pathlib import Path

import aiofiles

from torrent_grab.models.outcome import Submission
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.torrent.magnet import parse_magnet
from torrent_grab.utils.path import clean_file_name

log = logging.getLogger(__name__)


class BlackholeBackend:
    """
    Writes grabbed torrents to a folder.

    The folder cannot report what the client made of the file, so accepted
    submissions carry no info-hash and the locally computed one is used.
    """

    name = "Torrent Blackhole"

    def __init__(
        self,
        torrent_folder: Path,
        save_magnet_files: bool = False,
        magnet_file_extension: str = ".magnet",
    ):
        self.torrent_folder = Path(torrent_folder)
        self.save_magnet_files = save_magnet_files
        self.magnet_file_extension = magnet_file_extension

    async def submit_magnet(
        self, info_hash: str, magnet_url: str, release: ReleaseRecord
    ) -> Submission:
        if not self.save_magnet_files:
            return Submission.unsupported(
                "Blackhole does not support magnet links. "
                "Enable 'save_magnet_files' to write them to the watch folder."
            )

        title = release.title
        if not title:
            parsed = parse_magnet(magnet_url)
            title = getattr(parsed, "display_name", None) or info_hash

        filename = f"{clean_file_name(title)}{self.magnet_file_extension}"
        try:
            path = await self._write_atomic(filename, magnet_url.encode("utf-8"))
        except OSError as e:
            return Submission.rejected(f"Could not write magnet file '{filename}'", e)

        log.debug(f"Saved magnet link for '{release.display_name}' to {path}")
        return Submission.accepted()

    async def submit_file(
        self, info_hash: str, filename: str, data: bytes, release: ReleaseRecord
    ) -> Submission:
        try:
            path = await self._write_atomic(filename, data)
        except OSError as e:
            return Submission.rejected(f"Could not write torrent file '{filename}'", e)

        log.debug(f"Saved torrent file for '{release.display_name}' to {path}")
        return Submission.accepted()

    async def _write_atomic(self, filename: str, data: bytes) -> Path:
        """
        Writes through a temporary name so the watching client never picks up a
        half-written file.
        """
        await asyncio.to_thread(self.torrent_folder.mkdir, parents=True, exist_ok=True)
        final_path = self.torrent_folder / filename
        temp_path = final_path.with_name(f".{final_path.name}.tmp")

        try:
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(data)
            await asyncio.to_thread(os.replace, temp_path, final_path)
        finally:
            temp_path.unlink(missing_ok=True)
        return final_path

    async def close(self) -> None:
        return None
