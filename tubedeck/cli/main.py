"""Main CLI entry point for tubedeck."""

import click

from tubedeck.logging_config import configure_cli_logging

from .commands import history, themes, videos


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs on stderr")
def main(verbose: bool):
    """tubedeck - YouTube watch history, search and themes from the terminal."""
    configure_cli_logging(verbose=verbose)


main.add_command(history.history)
main.add_command(videos.resolve)
main.add_command(videos.search)
main.add_command(themes.theme)


if __name__ == "__main__":
    main()
