from __future__ import annotations

import re

THUMBNAIL_HOST = "https://img.youtube.com"
WATCH_URL_BASE = "https://www.youtube.com/watch"
EMBED_URL_BASE = "https://www.youtube.com/embed"
FALLBACK_TITLE_PREFIX = "YouTube Video"

_VIDEO_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/watch\?v=([^&]+)", re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/([^?&/]+)", re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/embed/([^?&/]+)", re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/v/([^?&/]+)", re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/shorts/([^?&/]+)", re.IGNORECASE),
)


def extract_video_id(url: str | None) -> str | None:
    """
    Extract the video id from the common YouTube URL shapes.

    Supported: `watch?v=ID`, `youtu.be/ID`, `embed/ID`, `v/ID` and `shorts/ID`,
    with or without scheme and `www.`.
    """
    if not url:
        return None
    candidate = url.strip()
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(candidate)
        if match and match.group(1):
            return match.group(1)
    return None


def is_valid_youtube_url(url: str | None) -> bool:
    return extract_video_id(url) is not None


def build_watch_url(video_id: str) -> str:
    return f"{WATCH_URL_BASE}?v={video_id}"


def build_embed_url(video_id: str) -> str:
    return f"{EMBED_URL_BASE}/{video_id}?rel=0&modestbranding=1"


def thumbnail_url(video_id: str) -> str:
    return f"{THUMBNAIL_HOST}/vi/{video_id}/mqdefault.jpg"


def generate_fallback_title(video_id: str) -> str:
    return f"{FALLBACK_TITLE_PREFIX} {video_id[:8]}..."
