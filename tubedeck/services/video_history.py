from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal, cast

from tubedeck.repositories.common import utc_now
from tubedeck.repositories.kv_store_repository import KeyValueBackend, KeyValueStoreError
from tubedeck.services.youtube_urls import generate_fallback_title, thumbnail_url

LOGGER = logging.getLogger("tubedeck.history")

HISTORY_STORAGE_KEY = "youtube-player-history"
MAX_HISTORY_ITEMS = 12
HISTORY_SCHEMA_VERSION = 1

HistoryStatus = Literal["ok", "corrupted", "read_failed", "write_failed"]


class InvalidVideoIdError(ValueError):
    """Raised when a history entry is requested for an empty video id."""


class _CorruptedHistoryError(Exception):
    pass


@dataclass(frozen=True)
class VideoHistoryEntry:
    id: str
    url: str
    video_id: str
    title: str
    watched_at: datetime

    @property
    def thumbnail(self) -> str:
        return thumbnail_url(self.video_id)


def _default_entries() -> list[VideoHistoryEntry]:
    return []


@dataclass(frozen=True)
class HistoryResult:
    """
    Outcome of a history operation.

    `entries` is always usable. `status` tells callers whether it reflects
    storage: `corrupted` and `read_failed` mean the persisted blob could not be
    used and history is reported empty; `write_failed` means the returned
    entries were computed but did not reach storage. An `add` that cannot read
    the existing history reports `read_failed` and leaves storage untouched.
    """

    entries: list[VideoHistoryEntry] = field(default_factory=_default_entries)
    status: HistoryStatus = "ok"
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class VideoHistoryStore:
    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        storage_key: str = HISTORY_STORAGE_KEY,
        max_items: int = MAX_HISTORY_ITEMS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._backend = backend
        self._storage_key = storage_key
        self._max_items = max(1, max_items)
        self._clock = clock

    @property
    def max_items(self) -> int:
        return self._max_items

    def load(self) -> HistoryResult:
        try:
            raw = self._backend.get(self._storage_key)
        except KeyValueStoreError as exc:
            LOGGER.warning("history load read_failed key=%s error=%s", self._storage_key, exc)
            return HistoryResult(status="read_failed", error=str(exc))

        if raw is None:
            return HistoryResult()

        try:
            entries = _decode_history(raw)
        except _CorruptedHistoryError as exc:
            LOGGER.warning("history load corrupted key=%s error=%s", self._storage_key, exc)
            return HistoryResult(status="corrupted", error=str(exc))
        return HistoryResult(entries=entries[: self._max_items])

    def add(self, url: str, video_id: str, title: str | None = None) -> HistoryResult:
        normalized_video_id = video_id.strip() if isinstance(video_id, str) else ""
        if not normalized_video_id:
            raise InvalidVideoIdError("video_id must be a non-empty string")

        current = self.load()
        watched_at = self._clock()
        resolved_title = title.strip() if isinstance(title, str) and title.strip() else None
        new_entry = VideoHistoryEntry(
            id=f"{normalized_video_id}-{int(_as_utc(watched_at).timestamp() * 1000)}",
            url=url,
            video_id=normalized_video_id,
            title=resolved_title or generate_fallback_title(normalized_video_id),
            watched_at=watched_at,
        )
        remaining = [
            entry for entry in current.entries if entry.video_id != normalized_video_id
        ]
        updated = [new_entry, *remaining][: self._max_items]

        if current.status == "read_failed":
            LOGGER.warning(
                "history add skipped save key=%s video_id=%s error=%s",
                self._storage_key,
                normalized_video_id,
                current.error,
            )
            return HistoryResult(entries=updated, status="read_failed", error=current.error)

        error = self._save(updated)
        if error is not None:
            return HistoryResult(entries=updated, status="write_failed", error=error)
        LOGGER.debug(
            "history add video_id=%s entries=%s replaced_corrupted=%s",
            normalized_video_id,
            len(updated),
            current.status == "corrupted",
        )
        return HistoryResult(entries=updated)

    def clear(self) -> HistoryResult:
        try:
            self._backend.delete(self._storage_key)
        except KeyValueStoreError as exc:
            LOGGER.warning("history clear write_failed key=%s error=%s", self._storage_key, exc)
            return HistoryResult(status="write_failed", error=str(exc))
        LOGGER.debug("history cleared key=%s", self._storage_key)
        return HistoryResult()

    def _save(self, entries: list[VideoHistoryEntry]) -> str | None:
        try:
            raw = _encode_history(entries)
            self._backend.set(self._storage_key, raw)
        except (KeyValueStoreError, TypeError, ValueError) as exc:
            LOGGER.warning(
                "history save write_failed key=%s entries=%s error=%s",
                self._storage_key,
                len(entries),
                exc,
            )
            return str(exc)
        return None


def format_relative_time(timestamp: datetime, *, now: datetime | None = None) -> str:
    reference = now if now is not None else utc_now()
    elapsed_seconds = (_as_utc(reference) - _as_utc(timestamp)).total_seconds()
    diff_in_minutes = math.floor(elapsed_seconds / 60)

    if diff_in_minutes < 1:
        return "Just now"
    if diff_in_minutes < 60:
        return f"{diff_in_minutes}m ago"

    diff_in_hours = diff_in_minutes // 60
    if diff_in_hours < 24:
        return f"{diff_in_hours}h ago"

    diff_in_days = diff_in_hours // 24
    if diff_in_days < 7:
        return f"{diff_in_days}d ago"

    return _as_utc(timestamp).astimezone().strftime("%x")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _encode_history(entries: list[VideoHistoryEntry]) -> str:
    return json.dumps(
        {
            "version": HISTORY_SCHEMA_VERSION,
            "items": [
                {
                    "id": entry.id,
                    "url": entry.url,
                    "videoId": entry.video_id,
                    "title": entry.title,
                    "watchedAt": _as_utc(entry.watched_at).isoformat(),
                }
                for entry in entries
            ],
        }
    )


def _decode_history(raw: str) -> list[VideoHistoryEntry]:
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise _CorruptedHistoryError(f"invalid json: {exc}") from exc

    # Unversioned blobs are a bare array of items.
    if isinstance(parsed, list):
        raw_items = cast(list[object], parsed)
    elif isinstance(parsed, dict):
        payload = cast(dict[str, object], parsed)
        version = payload.get("version")
        if version != HISTORY_SCHEMA_VERSION:
            raise _CorruptedHistoryError(f"unsupported version: {version!r}")
        items = payload.get("items")
        if not isinstance(items, list):
            raise _CorruptedHistoryError("items must be a list")
        raw_items = cast(list[object], items)
    else:
        raise _CorruptedHistoryError(f"unexpected payload type: {type(parsed).__name__}")

    return [_decode_entry(item) for item in raw_items]


def _decode_entry(item: object) -> VideoHistoryEntry:
    if not isinstance(item, dict):
        raise _CorruptedHistoryError("history item must be an object")
    payload = cast(dict[str, object], item)

    values: dict[str, str] = {}
    for key in ("id", "url", "videoId", "title", "watchedAt"):
        value = payload.get(key)
        if not isinstance(value, str):
            raise _CorruptedHistoryError(f"history item field {key} must be a string")
        values[key] = value
    if not values["videoId"]:
        raise _CorruptedHistoryError("history item videoId must not be empty")

    try:
        watched_at = _as_utc(datetime.fromisoformat(values["watchedAt"]))
    except ValueError as exc:
        raise _CorruptedHistoryError(f"invalid watchedAt: {values['watchedAt']!r}") from exc

    return VideoHistoryEntry(
        id=values["id"],
        url=values["url"],
        video_id=values["videoId"],
        title=values["title"],
        watched_at=watched_at,
    )
