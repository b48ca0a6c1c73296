from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from tubedeck.dependencies import get_metadata_service, reset_cached_dependencies
from tubedeck.main import create_app
from tubedeck.services.video_metadata_service import VideoMetadataService

OEMBED_TITLES: dict[str, str] = {
    "dQw4w9WgXcQ": "Rick Astley - Never Gonna Give You Up (Official Video)",
    "abc123": "Test Video",
}


class SteppingClock:
    """Deterministic clock: every call advances by `step`."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


def fake_oembed_fetcher(titles: dict[str, str]) -> Callable[[str], tuple[int, dict[str, Any]]]:
    def _fetch(url: str) -> tuple[int, dict[str, Any]]:
        for video_id, title in titles.items():
            if f"v%3D{video_id}" in url:
                return 200, {
                    "title": title,
                    "author_name": "Test Channel",
                    "author_url": "https://www.youtube.com/@test",
                }
        return 404, {}

    return _fetch


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock(datetime(2026, 2, 8, 12, 0, tzinfo=UTC))


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    data_dir = tmp_path / "runtime-data"
    data_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("TUBEDECK_DATA_DIR", str(data_dir))
    monkeypatch.setenv("TUBEDECK_TELEMETRY_SINK", "none")
    monkeypatch.delenv("TUBEDECK_YOUTUBE_API_KEY", raising=False)
    reset_cached_dependencies()

    metadata_service = VideoMetadataService(fetch_json=fake_oembed_fetcher(OEMBED_TITLES))
    app = create_app()
    app.dependency_overrides[get_metadata_service] = lambda: metadata_service
    with TestClient(app) as test_client:
        yield test_client

    reset_cached_dependencies()
