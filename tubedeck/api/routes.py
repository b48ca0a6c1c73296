from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from structlog.contextvars import bind_contextvars, reset_contextvars

from tubedeck.dependencies import (
    get_history_store,
    get_metadata_service,
    get_search_service,
    get_telemetry,
    get_theme_service,
)
from tubedeck.models.player_contracts import (
    AddHistoryRequest,
    ApplyThemeRequest,
    HistoryEntryModel,
    HistoryResponse,
    ResolvedVideo,
    SearchResponse,
    SearchResultModel,
    ThemeModel,
    ThemesResponse,
    VideoMetadataModel,
)
from tubedeck.services.theme_service import ThemeConfig, ThemeService
from tubedeck.services.video_history import (
    HistoryResult,
    InvalidVideoIdError,
    VideoHistoryStore,
    format_relative_time,
)
from tubedeck.services.video_metadata_service import VideoMetadataService
from tubedeck.services.youtube_search_service import YouTubeSearchService
from tubedeck.services.youtube_urls import (
    build_embed_url,
    build_watch_url,
    extract_video_id,
    thumbnail_url,
)
from tubedeck.telemetry import TelemetryClient

router = APIRouter()


def _history_response(result: HistoryResult, store: VideoHistoryStore) -> HistoryResponse:
    return HistoryResponse(
        status=result.status,
        error=result.error,
        max_items=store.max_items,
        entries=[
            HistoryEntryModel(
                id=entry.id,
                url=entry.url,
                video_id=entry.video_id,
                title=entry.title,
                thumbnail=entry.thumbnail,
                watched_at=entry.watched_at,
                watched_relative=format_relative_time(entry.watched_at),
            )
            for entry in result.entries
        ],
    )


def _theme_model(theme: ThemeConfig) -> ThemeModel:
    return ThemeModel(
        name=theme.name,
        display_name=theme.display_name,
        css_file=theme.css_file,
        description=theme.description,
        category=theme.category,
    )


def _themes_response(service: ThemeService) -> ThemesResponse:
    return ThemesResponse(
        current=_theme_model(service.current_theme()),
        available=[_theme_model(theme) for theme in service.available_themes()],
    )


def _require_video_id(url: str) -> str:
    video_id = extract_video_id(url)
    if video_id is None:
        raise HTTPException(status_code=422, detail=f"Not a recognized YouTube URL: {url}")
    return video_id


@router.get(
    "/history", response_model=HistoryResponse, tags=["history"], operation_id="history_list"
)
def history_list(
    store: Annotated[VideoHistoryStore, Depends(get_history_store)],
) -> HistoryResponse:
    return _history_response(store.load(), store)


@router.post(
    "/history", response_model=HistoryResponse, tags=["history"], operation_id="history_add"
)
def history_add(
    request: AddHistoryRequest,
    store: Annotated[VideoHistoryStore, Depends(get_history_store)],
    metadata_service: Annotated[VideoMetadataService, Depends(get_metadata_service)],
    telemetry: Annotated[TelemetryClient, Depends(get_telemetry)],
) -> HistoryResponse:
    video_id = _require_video_id(request.url)
    context_tokens = bind_contextvars(video_id=video_id)
    try:
        title = (
            request.title
            if request.title and request.title.strip()
            else metadata_service.get_title(video_id)
        )
        try:
            result = store.add(request.url, video_id, title)
        except InvalidVideoIdError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        telemetry.emit("history.add", status=result.status, entries=len(result.entries))
        return _history_response(result, store)
    finally:
        reset_contextvars(**context_tokens)


@router.delete(
    "/history", response_model=HistoryResponse, tags=["history"], operation_id="history_clear"
)
def history_clear(
    store: Annotated[VideoHistoryStore, Depends(get_history_store)],
    telemetry: Annotated[TelemetryClient, Depends(get_telemetry)],
) -> HistoryResponse:
    result = store.clear()
    telemetry.emit("history.clear", status=result.status)
    return _history_response(result, store)


@router.get(
    "/videos/resolve",
    response_model=ResolvedVideo,
    tags=["videos"],
    operation_id="videos_resolve",
)
def videos_resolve(url: Annotated[str, Query(min_length=1)]) -> ResolvedVideo:
    video_id = _require_video_id(url)
    return ResolvedVideo(
        video_id=video_id,
        watch_url=build_watch_url(video_id),
        embed_url=build_embed_url(video_id),
        thumbnail=thumbnail_url(video_id),
    )


@router.get(
    "/videos/{video_id}/metadata",
    response_model=VideoMetadataModel,
    tags=["videos"],
    operation_id="videos_metadata",
)
def videos_metadata(
    video_id: str,
    metadata_service: Annotated[VideoMetadataService, Depends(get_metadata_service)],
) -> VideoMetadataModel:
    metadata = metadata_service.get_metadata(video_id)
    return VideoMetadataModel(
        video_id=metadata.video_id,
        title=metadata.title,
        author_name=metadata.author_name,
        author_url=metadata.author_url,
        thumbnail_url=metadata.thumbnail_url,
        embed_url=metadata.embed_url,
        source=metadata.source,
    )


@router.get("/search", response_model=SearchResponse, tags=["search"], operation_id="search")
def search(
    q: Annotated[str, Query(min_length=1)],
    search_service: Annotated[YouTubeSearchService, Depends(get_search_service)],
    telemetry: Annotated[TelemetryClient, Depends(get_telemetry)],
    max_results: Annotated[int, Query(ge=1, le=50)] = 12,
) -> SearchResponse:
    response = search_service.search(q, max_results=max_results)
    telemetry.emit("search.execute", source=response.source, results=len(response.results))
    return SearchResponse(
        query=q,
        source=response.source,
        results=[
            SearchResultModel(
                id=result.id,
                title=result.title,
                channel_title=result.channel_title,
                thumbnail=result.thumbnail,
                published_at=result.published_at,
                description=result.description,
                channel_id=result.channel_id,
                duration=result.duration,
                view_count=result.view_count,
                url=result.url,
            )
            for result in response.results
        ],
    )


@router.get("/themes", response_model=ThemesResponse, tags=["themes"], operation_id="themes_list")
def themes_list(
    service: Annotated[ThemeService, Depends(get_theme_service)],
) -> ThemesResponse:
    return _themes_response(service)


@router.put(
    "/themes/current",
    response_model=ThemesResponse,
    tags=["themes"],
    operation_id="themes_apply",
)
def themes_apply(
    request: ApplyThemeRequest,
    service: Annotated[ThemeService, Depends(get_theme_service)],
) -> ThemesResponse:
    if not service.apply_theme(request.name):
        raise HTTPException(status_code=404, detail=f"Theme not found: {request.name}")
    return _themes_response(service)


@router.post(
    "/themes/next", response_model=ThemesResponse, tags=["themes"], operation_id="themes_next"
)
def themes_next(
    service: Annotated[ThemeService, Depends(get_theme_service)],
) -> ThemesResponse:
    service.next_theme()
    return _themes_response(service)
