from __future__ import annotations

from functools import lru_cache

from tubedeck.config import AppSettings, load_settings
from tubedeck.repositories.database import Database
from tubedeck.repositories.kv_store_repository import SqliteKeyValueRepository
from tubedeck.services.theme_service import ThemeService
from tubedeck.services.video_history import VideoHistoryStore
from tubedeck.services.video_metadata_service import VideoMetadataService
from tubedeck.services.youtube_search_service import YouTubeSearchService
from tubedeck.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_kv_repository() -> SqliteKeyValueRepository:
    database = Database(get_settings().db_path)
    database.initialize()
    return SqliteKeyValueRepository(database)


@lru_cache(maxsize=1)
def get_history_store() -> VideoHistoryStore:
    return VideoHistoryStore(
        get_kv_repository(),
        max_items=get_settings().history_max_items,
    )


@lru_cache(maxsize=1)
def get_theme_service() -> ThemeService:
    return ThemeService(get_kv_repository())


@lru_cache(maxsize=1)
def get_metadata_service() -> VideoMetadataService:
    settings = get_settings()
    return VideoMetadataService(
        oembed_base_url=settings.oembed_base_url,
        http_timeout_seconds=settings.http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_search_service() -> YouTubeSearchService:
    settings = get_settings()
    return YouTubeSearchService(
        api_key=settings.youtube_api_key,
        api_base_url=settings.youtube_api_base_url,
        http_timeout_seconds=settings.http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


def reset_cached_dependencies() -> None:
    get_history_store.cache_clear()
    get_theme_service.cache_clear()
    get_metadata_service.cache_clear()
    get_search_service.cache_clear()
    get_kv_repository.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
