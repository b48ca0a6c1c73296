from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from tubedeck.repositories.kv_store_repository import KeyValueBackend, KeyValueStoreError

LOGGER = logging.getLogger("tubedeck.themes")

THEME_STORAGE_KEY = "app-theme"

ThemeCategory = Literal["light", "dark", "custom"]


@dataclass(frozen=True)
class ThemeConfig:
    name: str
    display_name: str
    css_file: str
    description: str
    category: ThemeCategory


AVAILABLE_THEMES: tuple[ThemeConfig, ...] = (
    ThemeConfig(
        name="minimalist",
        display_name="Minimalist Light",
        css_file="/themes/minimalist.css",
        description="Clean, minimal design with light backgrounds and neutral colors",
        category="light",
    ),
    ThemeConfig(
        name="dark",
        display_name="Video-Focused Dark",
        css_file="/themes/dark.css",
        description="Dark theme optimized for video viewing with YouTube red accents",
        category="dark",
    ),
    ThemeConfig(
        name="youtube",
        display_name="YouTube Classic",
        css_file="/themes/youtube.css",
        description="Classic YouTube-inspired design with brand colors",
        category="light",
    ),
)

DEFAULT_THEME = "dark"


def get_theme_config(name: str) -> ThemeConfig | None:
    for theme in AVAILABLE_THEMES:
        if theme.name == name:
            return theme
    return None


class ThemeService:
    """Persisted theme preference; unknown stored names fall back to the default."""

    def __init__(self, backend: KeyValueBackend, *, storage_key: str = THEME_STORAGE_KEY) -> None:
        self._backend = backend
        self._storage_key = storage_key

    def available_themes(self) -> list[ThemeConfig]:
        return list(AVAILABLE_THEMES)

    def current_theme(self) -> ThemeConfig:
        try:
            stored = self._backend.get(self._storage_key)
        except KeyValueStoreError as exc:
            LOGGER.warning("theme load failed key=%s error=%s", self._storage_key, exc)
            stored = None

        theme = get_theme_config(stored) if stored else None
        if theme is None:
            if stored:
                LOGGER.info("theme stored value unknown name=%s; using default", stored)
            return _default_theme()
        return theme

    def apply_theme(self, name: str) -> bool:
        theme = get_theme_config(name)
        if theme is None:
            LOGGER.warning(
                "theme not found name=%s available=%s",
                name,
                ",".join(item.name for item in AVAILABLE_THEMES),
            )
            return False

        try:
            self._backend.set(self._storage_key, theme.name)
        except KeyValueStoreError as exc:
            LOGGER.warning("theme save failed name=%s error=%s", theme.name, exc)
        return True

    def next_theme(self) -> ThemeConfig:
        current = self.current_theme()
        names = [theme.name for theme in AVAILABLE_THEMES]
        next_index = (names.index(current.name) + 1) % len(AVAILABLE_THEMES)
        selected = AVAILABLE_THEMES[next_index]
        self.apply_theme(selected.name)
        return selected

    def switch_to_category(self, category: ThemeCategory) -> ThemeConfig | None:
        for theme in AVAILABLE_THEMES:
            if theme.category == category:
                self.apply_theme(theme.name)
                return theme
        return None


def _default_theme() -> ThemeConfig:
    return get_theme_config(DEFAULT_THEME) or AVAILABLE_THEMES[0]
