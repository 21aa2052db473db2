"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any, Iterable, Tuple

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from torrent_grab.models.config import BACKENDS, GrabConfig
from torrent_grab.models.outcome import ResolutionOutcome
from torrent_grab.models.release import ReleaseRecord
from torrent_grab.models.stats import GrabStats
from torrent_grab.storage.config_manager import SENSITIVE_KEYS

_SUGGESTIONS = {
    "ConfigurationError": [
        "• Run `torrent-grab init --force` to write a fresh configuration.",
        "• Check the values with `torrent-grab --show-config`.",
    ],
    "BackendError": [
        "• Check that the download client is running and reachable.",
        "• Verify the Web UI credentials in the configuration file.",
    ],
    "MalformedLocatorError": [
        "• The magnet link is not valid. Check the indexer's result.",
        "• Pass the .torrent URL as well so it can be used instead.",
    ],
    "ProtocolViolationError": [
        "• The indexer answered with a broken or endless redirect.",
        "• The indexer may require a login or an API key in the URL.",
    ],
    "FetchFailedError": [
        "• The torrent file could not be downloaded. Check your connection.",
        "• The link may have expired; search the indexer again.",
        "• Raise `request_timeout` if the indexer is slow.",
    ],
    "UnsupportedProtocolError": [
        "• The download client does not accept magnet links.",
        "• Enable `save_magnet_files` or switch to a client that supports them.",
    ],
    "DownloadFailedError": [
        "• Run the command with -vv for the full failure chain.",
        "• The indexer may have returned an HTML page instead of a torrent.",
    ],
    "NoUsableLocatorError": [
        "• Provide an http(s) URL to a .torrent file or a magnet link.",
    ],
}


def format_duration(seconds: float) -> str:
    """Formats a duration as e.g. '1m 05s' or '4.2s'."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    suggestions = _SUGGESTIONS.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(str(error))

    cause = error.__cause__
    while cause is not None:
        error_text.append(f"\n  caused by {type(cause).__name__}: {cause}", style="dim")
        cause = cause.__cause__

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    lines = []
    for key in sorted(config_data):
        value = config_data[key]
        if key in SENSITIVE_KEYS and value:
            value = "[hidden]"
        lines.append(f"{key} = {value}")

    console.print(
        Panel(
            escape("\n".join(lines)),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: GrabConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Backend:", f"[green]{BACKENDS[config.backend]}[/green]")
    if config.backend == "blackhole":
        table.add_row("Watch Folder:", f"[dim]{escape(config.torrent_folder)}[/dim]")
        table.add_row(
            "Magnet Files:", "✓ Saved" if config.save_magnet_files else "✗ Unsupported"
        )
    else:
        table.add_row("Web UI:", f"[dim]{escape(config.qbittorrent_url)}[/dim]")
        table.add_row("Category:", config.qbittorrent_category or "[dim]none[/dim]")
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row("Max Redirects:", str(config.max_redirects))
    table.add_row("Request Timeout:", f"{config.request_timeout:g}s")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_grab_result(release: ReleaseRecord, outcome: ResolutionOutcome):
    """Displays the outcome of grabbing a single release."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    table.add_row("Release:", escape(release.display_name))
    if outcome.ok:
        table.add_row("Info-Hash:", f"[bold green]{outcome.info_hash}[/bold green]")
        table.add_row("Sent As:", "magnet link" if outcome.via_magnet else "torrent file")
    else:
        table.add_row("Failure:", f"[red]{outcome.failure.kind.value}[/red]")
        table.add_row("Reason:", escape(outcome.failure.describe()))

    if mismatch := outcome.hash_mismatch:
        table.add_row(
            "⚠ Warning:",
            f"[yellow]client registered {mismatch.reported}, "
            f"expected {mismatch.expected}[/yellow]",
        )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Grabbed[/bold green]"
            if outcome.ok
            else "[bold red]✗ Grab Failed[/bold red]",
            border_style="green" if outcome.ok else "red",
            expand=False,
        )
    )


def print_results_table(results: Iterable[Tuple[ReleaseRecord, ResolutionOutcome]]):
    """Lists every release of a batch with its info-hash or failure kind."""
    console = Console()
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Release", style="cyan", overflow="fold")
    table.add_column("Result")
    table.add_column("Info-Hash / Reason", style="dim", overflow="fold")

    for release, outcome in results:
        if outcome.ok:
            status = "[green]✓ magnet[/green]" if outcome.via_magnet else "[green]✓ torrent[/green]"
            if outcome.hash_mismatch:
                status += " [yellow]⚠[/yellow]"
            detail = outcome.info_hash
        else:
            status = f"[red]✗ {outcome.failure.kind.value}[/red]"
            detail = outcome.failure.describe()
        table.add_row(escape(release.display_name), status, escape(detail))

    console.print(table)


def print_summary_panel(stats: GrabStats, duration_s: float):
    """Displays the final summary of a grab session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("✓ Grabbed:", f"[bold green]{stats.releases_grabbed}[/bold green]")
    if stats.releases_grabbed:
        stats_table.add_row(
            "",
            f"[dim]{stats.grabbed_via_magnet} magnet, "
            f"{stats.grabbed_via_torrent} torrent file[/dim]",
        )
    if stats.duplicates_skipped:
        stats_table.add_row("○ Duplicates:", f"[yellow]{stats.duplicates_skipped}[/yellow]")
    if stats.hash_mismatches:
        stats_table.add_row(
            "⚠ Hash Mismatches:", f"[yellow]{stats.hash_mismatches}[/yellow]"
        )
    if stats.releases_failed:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.releases_failed}[/bold red]")
        for kind, count in stats.failures_by_kind.most_common():
            stats_table.add_row("", f"[red]{count} {kind}[/red]")

    stats_table.add_row("", "")
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    border_color = "green" if not stats.releases_failed else "yellow"
    console.print()
    console.print(
        Panel(
            stats_table,
            title="🧲 [bold]Grab Complete[/bold]",
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
