from __future__ import annotations

from typing import Any

from tests.conftest import fake_oembed_fetcher
from tubedeck.services.http_json import HttpJsonError, parse_json_dict
from tubedeck.services.video_metadata_service import VideoMetadataService


class _CountingFetcher:
    def __init__(self, response: tuple[int, dict[str, Any]] | Exception) -> None:
        self.response = response
        self.urls: list[str] = []

    def __call__(self, url: str) -> tuple[int, dict[str, Any]]:
        self.urls.append(url)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_get_metadata_from_oembed() -> None:
    service = VideoMetadataService(fetch_json=fake_oembed_fetcher({"abc123": "Test Video"}))

    metadata = service.get_metadata("abc123")

    assert metadata.source == "oembed"
    assert metadata.title == "Test Video"
    assert metadata.author_name == "Test Channel"
    assert metadata.thumbnail_url == "https://img.youtube.com/vi/abc123/mqdefault.jpg"
    assert metadata.embed_url == "https://www.youtube.com/embed/abc123?rel=0&modestbranding=1"


def test_get_metadata_builds_oembed_request() -> None:
    fetcher = _CountingFetcher((200, {"title": "Hello"}))
    service = VideoMetadataService(
        oembed_base_url="https://oembed.example/oembed/",
        fetch_json=fetcher,
    )
    service.get_metadata("abc123")

    assert fetcher.urls == [
        "https://oembed.example/oembed?url=https%3A%2F%2Fwww.youtube.com%2Fwatch%3Fv%3Dabc123"
        "&format=json"
    ]


def test_get_metadata_falls_back_on_http_error_status() -> None:
    service = VideoMetadataService(fetch_json=_CountingFetcher((404, {})))

    metadata = service.get_metadata("dQw4w9WgXcQ")

    assert metadata.source == "fallback"
    assert metadata.title == "YouTube Video dQw4w9Wg..."
    assert metadata.author_name is None


def test_get_metadata_falls_back_on_network_error() -> None:
    service = VideoMetadataService(fetch_json=_CountingFetcher(HttpJsonError("offline")))
    assert service.get_metadata("abc123").source == "fallback"


def test_get_metadata_falls_back_on_blank_title() -> None:
    service = VideoMetadataService(fetch_json=_CountingFetcher((200, {"title": "  "})))
    assert service.get_metadata("abc123").source == "fallback"


def test_get_title_is_cached_per_video() -> None:
    fetcher = _CountingFetcher((200, {"title": "Cached Title"}))
    service = VideoMetadataService(fetch_json=fetcher)

    assert service.get_title("abc123") == "Cached Title"
    assert service.get_title("abc123") == "Cached Title"
    assert len(fetcher.urls) == 1

    service.get_title("other1")
    assert len(fetcher.urls) == 2


def test_title_cache_evicts_least_recently_used() -> None:
    fetcher = _CountingFetcher((200, {"title": "Cached Title"}))
    service = VideoMetadataService(fetch_json=fetcher, title_cache_size=2)

    service.get_title("vid1")
    service.get_title("vid2")
    service.get_title("vid1")
    service.get_title("vid3")
    assert len(fetcher.urls) == 3

    service.get_title("vid1")
    assert len(fetcher.urls) == 3
    service.get_title("vid2")
    assert len(fetcher.urls) == 4


def test_parse_json_dict_ignores_non_objects() -> None:
    assert parse_json_dict("[1, 2]") == {}
    assert parse_json_dict("not json") == {}
    assert parse_json_dict('{"title": "x"}') == {"title": "x"}
