"""
Download Client Layer.

Each module implements the TorrentBackend capability for one download client.
"""

from pathlib import Path

from torrent_grab.models.config import GrabConfig

from .base import TorrentBackend
from .blackhole import BlackholeBackend
from .qbittorrent import QBittorrentBackend


def create_backend(config: GrabConfig) -> TorrentBackend:
    """Builds the download client selected in the configuration."""
    if config.backend == "qbittorrent":
        return QBittorrentBackend(
            config.qbittorrent_url,
            username=config.qbittorrent_username,
            password=config.qbittorrent_password,
            category=config.qbittorrent_category,
            savepath=config.qbittorrent_savepath,
            add_paused=config.add_paused,
            request_timeout=config.request_timeout,
        )
    return BlackholeBackend(
        Path(config.torrent_folder).expanduser(),
        save_magnet_files=config.save_magnet_files,
        magnet_file_extension=config.magnet_file_extension,
    )


__all__ = ["BlackholeBackend", "QBittorrentBackend", "TorrentBackend", "create_backend"]
