from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, Protocol

import structlog

TELEMETRY_LOGGER_NAME = "tubedeck.telemetry"

# Watch history is personal data: URLs, titles and search queries never leave the process.
_REDACTED_KEY_FRAGMENTS = ("api_key", "authorization", "cookie", "query", "title", "token", "url")
_MAX_STRING_LENGTH = 120

TelemetryValue = bool | int | float | str | None


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        ...


class LogTelemetrySink:
    """Sends events to the telemetry logger, which gets its own JSON file."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger(TELEMETRY_LOGGER_NAME)

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self._logger.info("telemetry", telemetry_event=event_name, **dict(attributes))


@dataclass(frozen=True)
class TelemetryClient:
    enabled: bool
    sink: TelemetrySink | None = None

    def emit(self, event_name: str, **attributes: Any) -> None:
        if not self.enabled or self.sink is None:
            return
        self.sink.emit(
            event_name=event_name,
            attributes={
                key: _scrub(key, value)
                for key, value in ((str(k).strip().lower(), v) for k, v in attributes.items())
                if key
            },
        )


def build_telemetry_client(*, enabled: bool, sink: Literal["none", "log"]) -> TelemetryClient:
    if enabled and sink == "log":
        return TelemetryClient(enabled=True, sink=LogTelemetrySink())
    return TelemetryClient(enabled=False)


def _scrub(key: str, value: Any) -> TelemetryValue:
    if any(fragment in key for fragment in _REDACTED_KEY_FRAGMENTS):
        return "[redacted]"
    if value is None or isinstance(value, bool | int | float):
        return value
    if not isinstance(value, str):
        return type(value).__name__
    compact = " ".join(value.split())
    if len(compact) > _MAX_STRING_LENGTH:
        return f"{compact[:_MAX_STRING_LENGTH]}..."
    return compact
