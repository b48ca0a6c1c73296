from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from tubedeck.config import load_settings
from tubedeck.logging_config import (
    LOG_FILE_NAME,
    TELEMETRY_LOG_FILE_NAME,
    _stream_supports_color,  # pyright: ignore[reportPrivateUsage]
    configure_application_logging,
)
from tubedeck.telemetry import TelemetryClient, build_telemetry_client


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))


def test_settings_default_paths_follow_data_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TUBEDECK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("TUBEDECK_DB_PATH", raising=False)
    monkeypatch.delenv("TUBEDECK_LOG_DIR", raising=False)

    settings = load_settings()

    assert settings.data_dir == (tmp_path / "data").resolve()
    assert settings.db_path == (tmp_path / "data" / "state.db").resolve()
    assert settings.log_dir == (tmp_path / "data" / "logs").resolve()
    assert settings.history_max_items == 12
    assert settings.youtube_api_key is None


def test_settings_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUBEDECK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("TUBEDECK_DB_PATH", str(tmp_path / "elsewhere.db"))
    monkeypatch.setenv("TUBEDECK_HISTORY_MAX_ITEMS", "5")
    monkeypatch.setenv("TUBEDECK_YOUTUBE_API_KEY", "  ")
    monkeypatch.setenv("TUBEDECK_OEMBED_BASE_URL", "https://oembed.example/oembed/")
    monkeypatch.setenv("TUBEDECK_TELEMETRY_ENABLED", "off")
    monkeypatch.setenv("TUBEDECK_TELEMETRY_SINK", " LOG ")

    settings = load_settings()

    assert settings.db_path == (tmp_path / "elsewhere.db").resolve()
    assert settings.history_max_items == 5
    assert settings.youtube_api_key is None
    assert settings.oembed_base_url == "https://oembed.example/oembed"
    assert settings.telemetry_enabled is False
    assert settings.telemetry_sink == "log"


def test_settings_reject_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TUBEDECK_HISTORY_MAX_ITEMS", "0")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("TUBEDECK_HISTORY_MAX_ITEMS", "12")
    monkeypatch.setenv("TUBEDECK_TELEMETRY_SINK", "kafka")
    with pytest.raises(ValueError):
        load_settings()


def test_configure_application_logging_writes_json_lines(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TUBEDECK_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("TUBEDECK_LOG_LEVEL", "warning")
    settings = load_settings()

    log_file = configure_application_logging(settings)
    logging.getLogger("tubedeck.history").warning("history load corrupted key=%s", "k")
    root = logging.getLogger("tubedeck")
    for handler in list(root.handlers):
        handler.flush()
        root.removeHandler(handler)
        handler.close()

    assert log_file == settings.log_dir / LOG_FILE_NAME
    assert (settings.log_dir / TELEMETRY_LOG_FILE_NAME).exists()
    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    corrupted = [line for line in lines if line["event"] == "history load corrupted key=k"]
    assert corrupted
    assert corrupted[0]["level"] == "warning"
    assert corrupted[0]["logger"] == "tubedeck.history"


def test_stream_supports_color_handles_missing_isatty() -> None:
    assert _stream_supports_color(object()) is False


def test_telemetry_client_redacts_personal_fields() -> None:
    sink = _CaptureSink()
    client = TelemetryClient(enabled=True, sink=sink)

    client.emit(
        "history.add",
        status="ok",
        entries=3,
        url="https://youtu.be/abc123",
        title="Test Video",
        query="cooking",
        api_key="secret",
    )

    event_name, attributes = sink.events[0]
    assert event_name == "history.add"
    assert attributes["status"] == "ok"
    assert attributes["entries"] == 3
    assert attributes["url"] == "[redacted]"
    assert attributes["title"] == "[redacted]"
    assert attributes["query"] == "[redacted]"
    assert attributes["api_key"] == "[redacted]"


def test_telemetry_truncates_long_strings_and_summarizes_objects() -> None:
    sink = _CaptureSink()
    TelemetryClient(enabled=True, sink=sink).emit("x", note="a" * 500, extra={"k": 1})

    _, attributes = sink.events[0]
    assert attributes["note"].endswith("...")
    assert len(attributes["note"]) == 123
    assert attributes["extra"] == "dict"


def test_disabled_telemetry_client_does_not_emit() -> None:
    sink = _CaptureSink()
    TelemetryClient(enabled=False, sink=sink).emit("history.clear", status="ok")
    assert sink.events == []


def test_build_telemetry_client_none_sink_is_disabled() -> None:
    assert build_telemetry_client(enabled=True, sink="none").enabled is False
    assert build_telemetry_client(enabled=False, sink="log").enabled is False
    assert build_telemetry_client(enabled=True, sink="log").enabled is True


def test_telemetry_client_without_sink_is_silent() -> None:
    TelemetryClient(enabled=True).emit("history.add", status="ok")
    assert build_telemetry_client(enabled=True, sink="none").sink is None
