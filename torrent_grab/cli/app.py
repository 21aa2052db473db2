"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from torrent_grab import __version__
from torrent_grab.backends import create_backend
from torrent_grab.core.grab_manager import GrabManager, load_releases
from torrent_grab.core.resolver import AcquisitionResolver
from torrent_grab.exceptions import TorrentGrabError
from torrent_grab.models.config import BACKENDS, GrabConfig
from torrent_grab.models.outcome import Failure
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.storage.config_manager import ConfigManager
from torrent_grab.torrent.fetcher import TorrentFetcher, close_http_session
from torrent_grab.torrent.magnet import is_magnet, parse_magnet
from torrent_grab.torrent.metainfo import TorrentInfoReader
from torrent_grab.utils.structured_logger import create_structured_logger

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_grab_result,
    print_results_table,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("torrent_grab")

app = typer.Typer(
    name="torrent-grab",
    help=(
        "Hands indexer releases to a torrent client as a magnet link or a .torrent"
        " file. Use 'tgrab <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "torrent-grab"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(cli_options: dict | None = None) -> GrabConfig:
    try:
        return ConfigManager(CONFIG_FILE).load_config(cli_options)
    except TorrentGrabError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _build_resolver(config: GrabConfig):
    backend = create_backend(config)
    fetcher = TorrentFetcher(
        max_redirects=config.max_redirects,
        request_timeout=config.request_timeout,
        user_agent=config.user_agent or None,
        max_workers=config.max_workers,
    )
    return backend, AcquisitionResolver(backend, fetcher)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Torrent Grab CLI"""
    if version:
        console.print(f"[bold]torrent-grab[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("torrent_grab").setLevel(log_level)

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]torrent-grab init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_data = ConfigManager(CONFIG_FILE).get_config_as_dict()
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    backend: str = typer.Option(
        "blackhole",
        "--backend",
        "-b",
        help=f"Download client to use: {', '.join(BACKENDS)}.",
    ),
    folder: str | None = typer.Option(
        None, "--folder", help="Watch folder for the blackhole backend."
    ),
    save_magnet_files: bool = typer.Option(
        False,
        "--save-magnet-files",
        help="Let the blackhole backend write magnet links to files.",
    ),
    url: str | None = typer.Option(None, "--url", help="qBittorrent Web UI address."),
    username: str | None = typer.Option(None, "--username", help="Web UI username."),
    password: str | None = typer.Option(None, "--password", help="Web UI password."),
    category: str | None = typer.Option(
        None, "--category", help="Category assigned to added torrents."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Write a new configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        key: value
        for key, value in {
            "backend": backend,
            "torrent_folder": folder,
            "save_magnet_files": save_magnet_files,
            "qbittorrent_url": url,
            "qbittorrent_username": username,
            "qbittorrent_password": password,
            "qbittorrent_category": category,
        }.items()
        if value is not None
    }

    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except TorrentGrabError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Ready to grab! Try: [cyan]torrent-grab grab <TITLE> <URL>[/cyan]")


@app.command()
def grab(
    title: str = typer.Argument(..., help="Release title, used for file names."),
    url: str = typer.Argument(..., help="Torrent file URL or magnet link."),
    magnet: str | None = typer.Option(
        None, "--magnet", "-m", help="Magnet link to try before the torrent URL."
    ),
    backend: str | None = typer.Option(
        None, "--backend", "-b", help="Override the configured download client."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Give up on the release after this many seconds."
    ),
):
    """Send one release to the download client."""
    config = _load_config({"backend": backend} if backend else None)
    if timeout is not None:
        try:
            # request_timeout may never exceed resolve_timeout
            config.request_timeout = min(config.request_timeout, timeout)
            config.resolve_timeout = timeout
        except ValidationError as e:
            console.print(f"[red]✗ Invalid --timeout: {e.errors()[0]['msg']}[/red]")
            raise typer.Exit(code=1) from e
    release = ReleaseRecord(title=title, download_url=url, magnet_url=magnet)

    async def _grab_async():
        client, resolver = _build_resolver(config)
        try:
            return await asyncio.wait_for(
                resolver.resolve(release), timeout=config.resolve_timeout
            )
        finally:
            await close_http_session()
            await client.close()

    try:
        outcome = asyncio.run(_grab_async())
    except asyncio.TimeoutError as e:
        console.print(
            f"[bold red]✗ Gave up on '{escape(release.display_name)}' after "
            f"{config.resolve_timeout:g}s.[/bold red]"
        )
        raise typer.Exit(code=1) from e

    print_grab_result(release, outcome)
    if not outcome.ok:
        console.print(format_error_with_suggestions(outcome.failure.to_exception()))
        raise typer.Exit(code=1)


@app.command()
def batch(
    file: Path = typer.Argument(  # noqa: B008
        ..., help="JSON file with a list of releases.", exists=True, dir_okay=False
    ),
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of releases resolved at the same time."
    ),
):
    """Send every release in a JSON file to the download client."""
    cli_options = {"max_workers": workers} if workers is not None else {}
    config = _load_config(cli_options)

    try:
        releases = load_releases(file)
    except TorrentGrabError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    async def _batch_async():
        client, resolver = _build_resolver(config)
        base_logger, grab_logger, session_logger = create_structured_logger(
            Path(config.config_path) / "logs", enable_json=config.json_log
        )
        manager = GrabManager(config, resolver, grab_logger, session_logger)
        console.print(
            f"[bold cyan]🧲 Grabbing {len(releases)} releases with "
            f"{client.name}...[/bold cyan]"
        )
        try:
            results = await manager.grab_all(releases)
        finally:
            await close_http_session()
            await client.close()
            base_logger.close()
        return manager, results

    start_time = time.monotonic()
    manager, results = asyncio.run(_batch_async())
    duration = time.monotonic() - start_time

    if results:
        print_results_table(results)
    print_summary_panel(manager.stats, duration)
    manager.save_session_stats()

    if manager.stats.releases_failed:
        raise typer.Exit(code=1)


@app.command()
def inspect(
    locator: str = typer.Argument(..., help="Magnet link or path to a .torrent file."),
):
    """Print the info-hash of a magnet link or a local torrent file."""
    if is_magnet(locator):
        parsed = parse_magnet(locator)
        if isinstance(parsed, Failure):
            console.print(format_error_with_suggestions(parsed.to_exception()))
            raise typer.Exit(code=1)
        console.print(f"[bold]Info-Hash:[/bold] [green]{parsed.info_hash}[/green]")
        if parsed.display_name:
            console.print(f"[bold]Name:[/bold] {escape(parsed.display_name)}")
        for tracker in parsed.trackers:
            console.print(f"[bold]Tracker:[/bold] [dim]{escape(tracker)}[/dim]")
        return

    path = Path(locator).expanduser()
    try:
        data = path.read_bytes()
    except OSError as e:
        console.print(f"[red]✗ Could not read '{escape(str(path))}': {e}[/red]")
        raise typer.Exit(code=1) from e

    info_hash = TorrentInfoReader.get_info_hash(data)
    if isinstance(info_hash, Failure):
        console.print(format_error_with_suggestions(info_hash.to_exception()))
        raise typer.Exit(code=1)
    console.print(f"[bold]Info-Hash:[/bold] [green]{info_hash}[/green]")


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config()
        print_validation_table(config)
    except TorrentGrabError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
