from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

HistoryStatusName = Literal["ok", "corrupted", "read_failed", "write_failed"]


class HistoryEntryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    url: str
    video_id: str
    title: str
    thumbnail: str
    watched_at: datetime
    watched_relative: str


class HistoryResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: HistoryStatusName
    error: str | None = None
    max_items: int
    entries: list[HistoryEntryModel]


class AddHistoryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
    title: str | None = None


class ResolvedVideo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str
    watch_url: str
    embed_url: str
    thumbnail: str


class VideoMetadataModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str
    title: str
    author_name: str | None
    author_url: str | None
    thumbnail_url: str
    embed_url: str
    source: Literal["oembed", "fallback"]


class SearchResultModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    title: str
    channel_title: str
    thumbnail: str
    published_at: str
    description: str
    channel_id: str
    duration: str
    view_count: str
    url: str


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str
    source: Literal["youtube_data_api", "fallback"]
    results: list[SearchResultModel]


class ThemeModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    display_name: str
    css_file: str
    description: str
    category: Literal["light", "dark", "custom"]


class ThemesResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current: ThemeModel
    available: list[ThemeModel]


class ApplyThemeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
