"""Theme preference commands for tubedeck CLI."""

import click
from rich.console import Console

from tubedeck.dependencies import get_theme_service

console = Console()


@click.group()
def theme():
    """UI theme preference."""


@theme.command(name="list")
def list_themes():
    """List available themes."""
    service = get_theme_service()
    current = service.current_theme()

    for item in service.available_themes():
        marker = "[green]*[/green]" if item.name == current.name else " "
        console.print(f"{marker} [bold]{item.name}[/bold] ({item.category}) - {item.display_name}")
        console.print(f"    {item.description}")


@theme.command(name="set")
@click.argument("name")
def set_theme(name: str):
    """Switch to theme NAME."""
    if not get_theme_service().apply_theme(name):
        raise click.ClickException(f"Theme not found: {name}")
    console.print(f"[green]Theme set:[/green] {name}")


@theme.command(name="next")
def next_theme():
    """Cycle to the next theme."""
    selected = get_theme_service().next_theme()
    console.print(f"[green]Theme set:[/green] {selected.name}")
