"""Video lookup commands for tubedeck CLI."""

import click
from rich.console import Console
from rich.table import Table

from tubedeck.dependencies import get_search_service
from tubedeck.services.youtube_urls import (
    build_embed_url,
    build_watch_url,
    extract_video_id,
    thumbnail_url,
)

console = Console()


@click.command()
@click.argument("url")
def resolve(url: str):
    """Show the video id and player URLs for URL."""
    video_id = extract_video_id(url)
    if video_id is None:
        raise click.BadParameter(f"not a recognized YouTube URL: {url}", param_hint="URL")

    console.print(f"[bold]Video ID:[/bold]  {video_id}")
    console.print(f"[bold]Watch:[/bold]     {build_watch_url(video_id)}")
    console.print(f"[bold]Embed:[/bold]     {build_embed_url(video_id)}")
    console.print(f"[bold]Thumbnail:[/bold] {thumbnail_url(video_id)}")


@click.command()
@click.argument("query")
@click.option("--max-results", "-n", default=12, type=click.IntRange(1, 50))
def search(query: str, max_results: int):
    """Search YouTube for QUERY."""
    response = get_search_service().search(query, max_results=max_results)

    if response.source == "fallback":
        console.print("[dim]Showing results from the offline catalogue.[/dim]")
    if not response.results:
        console.print("[yellow]No results found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Title")
    table.add_column("Channel")
    table.add_column("Published")
    table.add_column("Duration")
    table.add_column("Views")
    table.add_column("Video ID", style="cyan", no_wrap=True)
    for result in response.results:
        table.add_row(
            result.title,
            result.channel_title,
            result.published_at,
            result.duration,
            result.view_count,
            result.id,
        )
    console.print(table)
