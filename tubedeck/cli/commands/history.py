"""Watch history commands for tubedeck CLI."""

import click
from rich.console import Console
from rich.table import Table

from tubedeck.dependencies import get_history_store, get_metadata_service
from tubedeck.services.video_history import HistoryResult, format_relative_time
from tubedeck.services.youtube_urls import extract_video_id

console = Console()


def _warn_on_status(result: HistoryResult):
    if result.status == "corrupted":
        console.print("[yellow]Stored history was unreadable and has been ignored.[/yellow]")
    elif result.status == "read_failed":
        console.print(f"[yellow]Could not read history:[/yellow] {result.error}")
    elif result.status == "write_failed":
        console.print(f"[yellow]History change was not saved:[/yellow] {result.error}")


def _print_entries(result: HistoryResult):
    if not result.entries:
        console.print("No videos watched yet.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Video ID", style="cyan")
    table.add_column("Watched")
    for position, entry in enumerate(result.entries, start=1):
        table.add_row(
            str(position),
            entry.title,
            entry.video_id,
            format_relative_time(entry.watched_at),
        )
    console.print(table)


@click.group()
def history():
    """Recently watched videos."""


@history.command(name="list")
def list_history():
    """Show recently watched videos, most recent first."""
    result = get_history_store().load()
    _warn_on_status(result)
    _print_entries(result)


@history.command()
@click.argument("url")
@click.option("--title", "-t", default=None, help="Title to store instead of looking it up")
def add(url: str, title: str | None):
    """Record URL as watched."""
    video_id = extract_video_id(url)
    if video_id is None:
        raise click.BadParameter(f"not a recognized YouTube URL: {url}", param_hint="URL")

    resolved_title = (
        title if title and title.strip() else get_metadata_service().get_title(video_id)
    )
    result = get_history_store().add(url, video_id, resolved_title)
    _warn_on_status(result)
    console.print(f"[green]Added:[/green] {result.entries[0].title} ({video_id})")


@history.command()
def clear():
    """Forget all watched videos."""
    result = get_history_store().clear()
    _warn_on_status(result)
    if result.ok:
        console.print("[green]History cleared.[/green]")
