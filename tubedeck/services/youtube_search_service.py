from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, Literal, cast

from tubedeck.repositories.common import utc_now
from tubedeck.services.http_json import HttpJsonError, JsonFetcher, build_url, default_fetcher
from tubedeck.services.youtube_urls import build_watch_url, thumbnail_url

LOGGER = logging.getLogger("tubedeck.search")

DEFAULT_API_BASE_URL = "https://www.googleapis.com/youtube/v3"
DEFAULT_MAX_RESULTS = 12
FALLBACK_CHANNEL_ID = "fallback-channel"

_DURATION_PATTERN = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


class YouTubeSearchError(Exception):
    pass


@dataclass(frozen=True)
class YouTubeSearchResult:
    id: str
    title: str
    channel_title: str
    thumbnail: str
    published_at: str
    description: str
    channel_id: str
    duration: str = "N/A"
    view_count: str = "N/A"

    @property
    def url(self) -> str:
        return build_watch_url(self.id)


@dataclass(frozen=True)
class YouTubeSearchResponse:
    results: list[YouTubeSearchResult]
    source: Literal["youtube_data_api", "fallback"]


@dataclass(frozen=True)
class YouTubeVideoDetails:
    duration: str
    view_count: str
    like_count: str | None
    comment_count: str | None


@dataclass(frozen=True)
class _CatalogVideo:
    id: str
    title: str
    channel: str
    keywords: tuple[str, ...]
    published_at: str


FALLBACK_CATALOG: tuple[_CatalogVideo, ...] = (
    _CatalogVideo(
        "dQw4w9WgXcQ",
        "Rick Astley - Never Gonna Give You Up (Official Video)",
        "Rick Astley",
        ("music", "song", "classic", "rick", "astley", "never", "gonna", "give", "up", "80s"),
        "2009-10-25T07:57:33Z",
    ),
    _CatalogVideo(
        "kJQP7kiw5Fk",
        "Luis Fonsi - Despacito ft. Daddy Yankee (Official Music Video)",
        "Luis Fonsi",
        ("music", "despacito", "luis", "fonsi", "latin", "spanish", "reggaeton"),
        "2017-01-12T16:00:01Z",
    ),
    _CatalogVideo(
        "fJ9rUzIMcZQ",
        "Queen - Bohemian Rhapsody (Official Video)",
        "Queen Official",
        ("music", "queen", "bohemian", "rhapsody", "rock", "classic", "freddie", "mercury"),
        "2008-08-01T15:53:05Z",
    ),
    _CatalogVideo(
        "jNQXAC9IVRw",
        "Learn JavaScript - Full Course for Beginners",
        "freeCodeCamp.org",
        ("tutorial", "javascript", "programming", "learn", "coding", "web", "development", "course"),
        "2019-12-18T16:00:11Z",
    ),
    _CatalogVideo(
        "ScMzIvxBSi4",
        "React Course - Beginner's Tutorial for React JavaScript Library [2022]",
        "freeCodeCamp.org",
        ("tutorial", "react", "javascript", "web", "development", "beginners", "library"),
        "2021-12-09T14:00:32Z",
    ),
    _CatalogVideo(
        "L_jWHffIx5E",
        "Python Tutorial - Python Full Course for Beginners",
        "Programming with Mosh",
        ("tutorial", "python", "programming", "beginners", "course", "learn", "coding"),
        "2019-02-18T15:00:01Z",
    ),
    _CatalogVideo(
        "fC7oUOUEEi4",
        "Minecraft, But Everything is 10x Bigger!",
        "MrBeast Gaming",
        ("minecraft", "gaming", "mrbeast", "challenge", "bigger", "survival"),
        "2021-08-14T20:00:01Z",
    ),
    _CatalogVideo(
        "BxV14h0kFs0",
        "Among Us But With 1000 Players!",
        "MrBeast Gaming",
        ("among", "us", "gaming", "mrbeast", "1000", "players", "challenge"),
        "2020-11-28T21:00:15Z",
    ),
    _CatalogVideo(
        "ixlgm_XXzJg",
        "Gordon Ramsay's perfect scrambled eggs",
        "Gordon Ramsay",
        ("cooking", "gordon", "ramsay", "eggs", "scrambled", "recipe", "food", "chef"),
        "2016-04-25T13:00:01Z",
    ),
    _CatalogVideo(
        "PUP7U5vTMM0",
        "How to Make Perfect Pasta Every Time",
        "Bon Appétit",
        ("cooking", "pasta", "recipe", "italian", "food", "how", "to", "perfect"),
        "2022-03-15T17:00:01Z",
    ),
    _CatalogVideo(
        "wJyUtbn0O5Y",
        "How Does WiFi Work?",
        "Veritasium",
        ("science", "wifi", "technology", "how", "works", "internet", "wireless"),
        "2022-05-12T14:00:01Z",
    ),
    _CatalogVideo(
        "aircAruvnKk",
        "But what is a neural network? | Chapter 1, Deep learning",
        "3Blue1Brown",
        ("science", "neural", "network", "ai", "machine", "learning", "math", "deep"),
        "2017-10-05T15:00:01Z",
    ),
)


class YouTubeSearchService:
    def __init__(
        self,
        *,
        api_key: str | None,
        api_base_url: str = DEFAULT_API_BASE_URL,
        http_timeout_seconds: float = 10.0,
        fetch_json: JsonFetcher | None = None,
    ) -> None:
        self._api_key = api_key.strip() if api_key and api_key.strip() else None
        self._api_base_url = api_base_url.rstrip("/")
        self._fetch_json = fetch_json or default_fetcher(max(0.5, http_timeout_seconds))

    @property
    def api_configured(self) -> bool:
        return self._api_key is not None

    def search(self, query: str, max_results: int = DEFAULT_MAX_RESULTS) -> YouTubeSearchResponse:
        normalized_query = query.strip()
        clamped_max_results = max(1, min(50, max_results))
        if not normalized_query:
            return YouTubeSearchResponse(results=[], source="fallback")

        if self._api_key is None:
            LOGGER.info("youtube search api_key missing; using fallback catalog")
            return YouTubeSearchResponse(
                results=fallback_search_results(normalized_query, clamped_max_results),
                source="fallback",
            )

        try:
            results = self._search_data_api(normalized_query, clamped_max_results, self._api_key)
        except YouTubeSearchError as exc:
            LOGGER.warning("youtube search failed; using fallback catalog error=%s", exc)
            return YouTubeSearchResponse(
                results=fallback_search_results(normalized_query, clamped_max_results),
                source="fallback",
            )
        return YouTubeSearchResponse(
            results=self._with_details(results), source="youtube_data_api"
        )

    def _with_details(self, results: list[YouTubeSearchResult]) -> list[YouTubeSearchResult]:
        details = self.get_video_details([result.id for result in results])
        enriched: list[YouTubeSearchResult] = []
        for result in results:
            detail = details.get(result.id)
            if detail is None:
                enriched.append(result)
                continue
            enriched.append(
                replace(result, duration=detail.duration, view_count=detail.view_count)
            )
        return enriched

    def get_video_details(self, video_ids: list[str]) -> dict[str, YouTubeVideoDetails]:
        if self._api_key is None or not video_ids:
            return {}

        url = build_url(
            f"{self._api_base_url}/videos",
            {
                "part": "statistics,contentDetails",
                "id": ",".join(video_ids),
                "key": self._api_key,
            },
        )
        try:
            status_code, payload = self._fetch_json(url)
        except HttpJsonError as exc:
            LOGGER.warning("youtube video details failed error=%s", exc)
            return {}
        if status_code != 200:
            LOGGER.warning("youtube video details failed status=%s", status_code)
            return {}

        details: dict[str, YouTubeVideoDetails] = {}
        for item in _as_dict_list(payload.get("items")):
            video_id = item.get("id")
            if not isinstance(video_id, str):
                continue
            content_details = _as_dict(item.get("contentDetails"))
            statistics = _as_dict(item.get("statistics"))
            details[video_id] = YouTubeVideoDetails(
                duration=format_duration(str(content_details.get("duration") or "")),
                view_count=format_view_count(_to_int(statistics.get("viewCount"))),
                like_count=_to_optional_str(statistics.get("likeCount")),
                comment_count=_to_optional_str(statistics.get("commentCount")),
            )
        return details

    def _search_data_api(
        self, query: str, max_results: int, api_key: str
    ) -> list[YouTubeSearchResult]:
        url = build_url(
            f"{self._api_base_url}/search",
            {
                "part": "snippet",
                "q": query,
                "type": "video",
                "maxResults": str(max_results),
                "order": "relevance",
                "key": api_key,
            },
        )
        try:
            status_code, payload = self._fetch_json(url)
        except HttpJsonError as exc:
            raise YouTubeSearchError(str(exc)) from exc

        error = payload.get("error")
        if status_code != 200 or error is not None:
            message = _as_dict(error).get("message") or f"HTTP {status_code}"
            raise YouTubeSearchError(str(message))

        results: list[YouTubeSearchResult] = []
        for item in _as_dict_list(payload.get("items")):
            video_id = _as_dict(item.get("id")).get("videoId")
            if not isinstance(video_id, str) or not video_id:
                continue
            snippet = _as_dict(item.get("snippet"))
            thumbnails = _as_dict(snippet.get("thumbnails"))
            thumbnail = (
                _as_dict(thumbnails.get("medium")).get("url")
                or _as_dict(thumbnails.get("default")).get("url")
                or thumbnail_url(video_id)
            )
            results.append(
                YouTubeSearchResult(
                    id=video_id,
                    title=str(snippet.get("title") or ""),
                    channel_title=str(snippet.get("channelTitle") or ""),
                    thumbnail=str(thumbnail),
                    published_at=format_publish_date(str(snippet.get("publishedAt") or "")),
                    description=str(snippet.get("description") or ""),
                    channel_id=str(snippet.get("channelId") or ""),
                )
            )
        return results


def fallback_search_results(query: str, max_results: int) -> list[YouTubeSearchResult]:
    query_lower = query.strip().lower()
    if not query_lower:
        return []

    scored: list[tuple[int, _CatalogVideo]] = []
    for video in FALLBACK_CATALOG:
        score = _relevance_score(video, query_lower)
        if score > 0:
            scored.append((score, video))
    # Stable sort keeps catalogue order among equal scores.
    scored.sort(key=lambda pair: pair[0], reverse=True)

    return [
        YouTubeSearchResult(
            id=video.id,
            title=video.title,
            channel_title=video.channel,
            thumbnail=thumbnail_url(video.id),
            published_at=format_publish_date(video.published_at),
            description=f"{video.title} - Watch this amazing video from {video.channel}",
            channel_id=FALLBACK_CHANNEL_ID,
        )
        for _, video in scored[: max(0, max_results)]
    ]


def _relevance_score(video: _CatalogVideo, query_lower: str) -> int:
    title_lower = video.title.lower()
    score = 0
    if query_lower in title_lower:
        score += 100
    score += 20 * sum(
        1 for keyword in video.keywords if keyword in query_lower or query_lower in keyword
    )
    if query_lower in video.channel.lower():
        score += 30
    for word in query_lower.split(" "):
        if len(word) <= 2:
            continue
        if word in title_lower:
            score += 15
        if any(word in keyword for keyword in video.keywords):
            score += 10
    return score


def format_duration(iso_duration: str) -> str:
    match = _DURATION_PATTERN.search(iso_duration)
    if not match:
        return "N/A"
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_view_count(views: int) -> str:
    if views >= 1_000_000_000:
        return f"{views / 1_000_000_000:.1f}B views"
    if views >= 1_000_000:
        return f"{views / 1_000_000:.1f}M views"
    if views >= 1_000:
        return f"{views / 1_000:.1f}K views"
    return f"{views} views"


def format_publish_date(iso_date: str, *, now: datetime | None = None) -> str:
    try:
        published = datetime.fromisoformat(iso_date)
    except ValueError:
        return "Unknown"
    if published.tzinfo is None:
        published = published.replace(tzinfo=UTC)
    reference = now if now is not None else utc_now()

    diff_days = math.ceil(abs((reference - published).total_seconds()) / 86_400)
    if diff_days == 1:
        return "1 day ago"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        weeks = diff_days // 7
        return "1 week ago" if weeks == 1 else f"{weeks} weeks ago"
    if diff_days < 365:
        months = diff_days // 30
        return "1 month ago" if months == 1 else f"{months} months ago"
    years = diff_days // 365
    return "1 year ago" if years == 1 else f"{years} years ago"


def _as_dict(value: object) -> dict[str, Any]:
    if not isinstance(value, dict):
        return {}
    return cast(dict[str, Any], value)


def _as_dict_list(value: object) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [
        cast(dict[str, Any], item)
        for item in cast(list[object], value)
        if isinstance(item, dict)
    ]


def _to_int(value: object) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


def _to_optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
