from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.conftest import OEMBED_TITLES, fake_oembed_fetcher
from tubedeck.cli.main import main
from tubedeck.dependencies import reset_cached_dependencies
from tubedeck.services.video_metadata_service import VideoMetadataService


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[CliRunner]:
    monkeypatch.setenv("TUBEDECK_DATA_DIR", str(tmp_path / "cli-data"))
    monkeypatch.delenv("TUBEDECK_YOUTUBE_API_KEY", raising=False)
    reset_cached_dependencies()
    yield CliRunner()
    reset_cached_dependencies()
    for handler in list(logging.getLogger("tubedeck").handlers):
        logging.getLogger("tubedeck").removeHandler(handler)


def test_history_add_list_clear(runner: CliRunner) -> None:
    added = runner.invoke(
        main, ["history", "add", "https://youtu.be/abc123", "--title", "Test Video"]
    )
    assert added.exit_code == 0, added.output
    assert "Added:" in added.output

    listed = runner.invoke(main, ["history", "list"])
    assert listed.exit_code == 0
    assert "Test Video" in listed.output
    assert "abc123" in listed.output

    cleared = runner.invoke(main, ["history", "clear"])
    assert cleared.exit_code == 0
    assert "History cleared." in cleared.output

    empty = runner.invoke(main, ["history", "list"])
    assert "No videos watched yet." in empty.output


def test_history_add_with_blank_title_prints_stored_title(
    runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    service = VideoMetadataService(fetch_json=fake_oembed_fetcher(OEMBED_TITLES))
    monkeypatch.setattr(
        "tubedeck.cli.commands.history.get_metadata_service", lambda: service
    )

    added = runner.invoke(main, ["history", "add", "https://youtu.be/abc123", "--title", "   "])

    assert added.exit_code == 0, added.output
    assert "Added: Test Video (abc123)" in added.output


def test_history_add_rejects_invalid_url(runner: CliRunner) -> None:
    result = runner.invoke(main, ["history", "add", "https://example.com/video"])
    assert result.exit_code == 2


def test_resolve(runner: CliRunner) -> None:
    result = runner.invoke(main, ["resolve", "https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
    assert result.exit_code == 0
    assert "dQw4w9WgXcQ" in result.output
    assert "https://www.youtube.com/embed/dQw4w9WgXcQ?rel=0&modestbranding=1" in result.output


def test_search_uses_offline_catalogue(runner: CliRunner) -> None:
    result = runner.invoke(main, ["search", "bohemian", "-n", "1"])
    assert result.exit_code == 0
    assert "offline catalogue" in result.output
    assert "fJ9rUzIMcZQ" in result.output


def test_theme_commands(runner: CliRunner) -> None:
    listed = runner.invoke(main, ["theme", "list"])
    assert listed.exit_code == 0
    assert "minimalist" in listed.output

    assert runner.invoke(main, ["theme", "set", "youtube"]).exit_code == 0
    cycled = runner.invoke(main, ["theme", "next"])
    assert "minimalist" in cycled.output

    unknown = runner.invoke(main, ["theme", "set", "neon"])
    assert unknown.exit_code == 1
    assert "Theme not found" in unknown.output
