"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

BACKENDS = {
    "blackhole": "Watch folder (writes .torrent files for a client to pick up)",
    "qbittorrent": "qBittorrent Web API",
}

DEFAULT_USER_AGENT = "torrent-grab/{version} (+https://github.com/torrent-grab)"


class GrabConfig(BaseModel):
    """A validated configuration model for the application."""

    # Download client
    backend: str = "blackhole"
    torrent_folder: str = ""
    save_magnet_files: bool = False
    magnet_file_extension: str = ".magnet"
    qbittorrent_url: str = "http://localhost:8080"
    qbittorrent_username: str = ""
    qbittorrent_password: str = ""
    qbittorrent_category: str = ""
    qbittorrent_savepath: str = ""
    add_paused: bool = False

    # Network
    request_timeout: float = 30.0
    resolve_timeout: float = 120.0
    max_redirects: int = 5
    max_workers: int = 4
    user_agent: str = ""

    # Logging
    json_log: bool = False

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in BACKENDS:
            raise ValueError(
                f"Unknown backend '{v}'. Choose one of: {', '.join(BACKENDS)}."
            )
        return v

    @field_validator("magnet_file_extension")
    @classmethod
    def validate_magnet_extension(cls, v: str) -> str:
        if not v:
            return ".magnet"
        return v if v.startswith(".") else f".{v}"

    @field_validator("qbittorrent_url")
    @classmethod
    def validate_qbittorrent_url(cls, v: str) -> str:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("qbittorrent_url must start with http:// or https://.")
        return v.rstrip("/")

    @field_validator("request_timeout", "resolve_timeout")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0 or v > 3600:
            raise ValueError("Timeouts must be between 0 and 3600 seconds.")
        return v

    @field_validator("max_redirects")
    @classmethod
    def validate_redirects(cls, v: int) -> int:
        if v < 1 or v > 20:
            raise ValueError("Max redirects must be between 1 and 20.")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "GrabConfig":
        """Validates that the selected backend has what it needs."""
        if self.backend == "blackhole" and not self.torrent_folder:
            raise ValueError(
                "The blackhole backend requires 'torrent_folder' to be set."
            )
        if self.backend == "qbittorrent" and not self.qbittorrent_url:
            raise ValueError(
                "The qbittorrent backend requires 'qbittorrent_url' to be set."
            )
        return self

    @model_validator(mode="after")
    def validate_timeout_order(self) -> "GrabConfig":
        if self.resolve_timeout < self.request_timeout:
            raise ValueError(
                "resolve_timeout cannot be shorter than request_timeout."
            )
        return self

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path"}
        return {key for key in cls.model_fields if key not in internal_fields}
