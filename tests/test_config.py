"""Tests for configuration validation and the INI config manager."""

import configparser

import pytest
from pydantic import ValidationError

from torrent_grab.exceptions import ConfigurationError
from torrent_grab.models.config import GrabConfig
from torrent_grab.storage.config_manager import ConfigManager


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "torrent-grab" / "config.ini"


class TestGrabConfig:
    def test_defaults(self, tmp_path):
        config = GrabConfig(torrent_folder="/watch", config_path=str(tmp_path))

        assert config.backend == "blackhole"
        assert config.max_redirects == 5
        assert config.save_magnet_files is False

    def test_backend_is_normalized(self, tmp_path):
        config = GrabConfig(backend=" QBitTorrent ", config_path=str(tmp_path))
        assert config.backend == "qbittorrent"

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown backend"):
            GrabConfig(backend="transmission", config_path=str(tmp_path))

    def test_blackhole_needs_a_folder(self, tmp_path):
        with pytest.raises(ValidationError, match="torrent_folder"):
            GrabConfig(config_path=str(tmp_path))

    def test_url_is_checked_and_trimmed(self, tmp_path):
        config = GrabConfig(
            backend="qbittorrent",
            qbittorrent_url="https://qbt.example.org/",
            config_path=str(tmp_path),
        )
        assert config.qbittorrent_url == "https://qbt.example.org"

        with pytest.raises(ValidationError):
            GrabConfig(
                backend="qbittorrent",
                qbittorrent_url="qbt.example.org",
                config_path=str(tmp_path),
            )

    def test_magnet_extension_gets_a_dot(self, tmp_path):
        config = GrabConfig(
            torrent_folder="/w", magnet_file_extension="mgt", config_path=str(tmp_path)
        )
        assert config.magnet_file_extension == ".mgt"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_redirects", 0),
            ("max_redirects", 21),
            ("max_workers", 0),
            ("max_workers", 33),
            ("request_timeout", 0),
            ("resolve_timeout", 5000),
        ],
    )
    def test_out_of_range_values(self, tmp_path, field, value):
        with pytest.raises(ValidationError):
            GrabConfig(torrent_folder="/w", config_path=str(tmp_path), **{field: value})

    def test_resolve_timeout_must_cover_request_timeout(self, tmp_path):
        with pytest.raises(ValidationError, match="resolve_timeout"):
            GrabConfig(
                torrent_folder="/w",
                request_timeout=60,
                resolve_timeout=30,
                config_path=str(tmp_path),
            )

    def test_ini_keys_exclude_internal_fields(self):
        keys = GrabConfig.get_ini_keys()
        assert "config_path" not in keys
        assert {"backend", "torrent_folder", "max_redirects"} <= keys


class TestConfigManager:
    def test_save_and_load(self, config_file):
        manager = ConfigManager(config_file)
        manager.save_new_config(
            {"torrent_folder": "/watch", "save_magnet_files": True, "max_workers": 8}
        )

        config = ConfigManager(config_file).load_config()

        assert config.torrent_folder == "/watch"
        assert config.save_magnet_files is True
        assert config.max_workers == 8
        assert config.request_timeout == 30.0
        assert config.config_path == str(config_file.parent)

    def test_cli_options_override_file(self, config_file):
        ConfigManager(config_file).save_new_config({"torrent_folder": "/watch"})

        config = ConfigManager(config_file).load_config({"max_workers": 2})

        assert config.max_workers == 2

    def test_missing_file(self, config_file):
        with pytest.raises(ConfigurationError, match="torrent-grab init"):
            ConfigManager(config_file).load_config()

    def test_invalid_settings_are_not_saved(self, config_file):
        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigManager(config_file).save_new_config({"backend": "nope"})
        assert not config_file.exists()

    def test_invalid_value_in_file(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\ntorrent_folder = /w\nmax_workers = many\n")

        with pytest.raises(ConfigurationError, match="Invalid value"):
            ConfigManager(config_file).load_config()

    def test_missing_keys_are_migrated(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\ntorrent_folder = /w\n")

        config = ConfigManager(config_file).load_config()

        assert config.max_redirects == 5
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_file)
        assert parser["DEFAULT"]["max_redirects"] == "5"
        assert parser["DEFAULT"]["torrent_folder"] == "/w"

    def test_percent_signs_survive(self, config_file):
        ConfigManager(config_file).save_new_config(
            {
                "backend": "qbittorrent",
                "qbittorrent_password": "100%secret",
            }
        )

        config = ConfigManager(config_file).load_config()

        assert config.qbittorrent_password == "100%secret"

    def test_config_as_dict(self, config_file):
        ConfigManager(config_file).save_new_config({"torrent_folder": "/watch"})

        values = ConfigManager(config_file).get_config_as_dict()

        assert values["torrent_folder"] == "/watch"
        assert values["backend"] == "blackhole"
