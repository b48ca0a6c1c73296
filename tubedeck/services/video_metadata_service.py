from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Literal

from tubedeck.services.http_json import HttpJsonError, JsonFetcher, build_url, default_fetcher
from tubedeck.services.youtube_urls import (
    build_embed_url,
    build_watch_url,
    generate_fallback_title,
    thumbnail_url,
)

LOGGER = logging.getLogger("tubedeck.metadata")

DEFAULT_OEMBED_BASE_URL = "https://www.youtube.com/oembed"
TITLE_CACHE_SIZE = 256


@dataclass(frozen=True)
class VideoMetadata:
    video_id: str
    title: str
    author_name: str | None
    author_url: str | None
    thumbnail_url: str
    embed_url: str
    source: Literal["oembed", "fallback"]


class VideoMetadataService:
    def __init__(
        self,
        *,
        oembed_base_url: str = DEFAULT_OEMBED_BASE_URL,
        http_timeout_seconds: float = 5.0,
        fetch_json: JsonFetcher | None = None,
        title_cache_size: int = TITLE_CACHE_SIZE,
    ) -> None:
        self._oembed_base_url = oembed_base_url.rstrip("/")
        self._fetch_json = fetch_json or default_fetcher(max(0.5, http_timeout_seconds))
        self._title_cache: OrderedDict[str, str] = OrderedDict()
        self._title_cache_size = max(1, title_cache_size)

    def get_metadata(self, video_id: str) -> VideoMetadata:
        url = build_url(
            self._oembed_base_url,
            {"url": build_watch_url(video_id), "format": "json"},
        )
        try:
            status_code, payload = self._fetch_json(url)
        except HttpJsonError as exc:
            LOGGER.info("oembed lookup failed video_id=%s error=%s", video_id, exc)
            return _fallback_metadata(video_id)

        title = _optional_text(payload.get("title"))
        if status_code != 200 or title is None:
            LOGGER.info(
                "oembed lookup unusable video_id=%s status=%s has_title=%s",
                video_id,
                status_code,
                title is not None,
            )
            return _fallback_metadata(video_id)

        return VideoMetadata(
            video_id=video_id,
            title=title,
            author_name=_optional_text(payload.get("author_name")),
            author_url=_optional_text(payload.get("author_url")),
            thumbnail_url=_optional_text(payload.get("thumbnail_url")) or thumbnail_url(video_id),
            embed_url=build_embed_url(video_id),
            source="oembed",
        )

    def get_title(self, video_id: str) -> str:
        cached = self._title_cache.get(video_id)
        if cached is not None:
            self._title_cache.move_to_end(video_id)
            return cached
        title = self.get_metadata(video_id).title
        self._title_cache[video_id] = title
        # Least recently used titles go first.
        while len(self._title_cache) > self._title_cache_size:
            self._title_cache.popitem(last=False)
        return title


def _fallback_metadata(video_id: str) -> VideoMetadata:
    return VideoMetadata(
        video_id=video_id,
        title=generate_fallback_title(video_id),
        author_name=None,
        author_url=None,
        thumbnail_url=thumbnail_url(video_id),
        embed_url=build_embed_url(video_id),
        source="fallback",
    )


def _optional_text(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    return normalized or None
