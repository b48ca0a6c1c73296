from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

USER_AGENT = "tubedeck/0.1"

JsonFetcher = Callable[[str], tuple[int, dict[str, Any]]]


class HttpJsonError(Exception):
    """Raised when a JSON endpoint cannot be reached at all."""


def build_url(base_url: str, params: dict[str, str] | None = None) -> str:
    query = urlencode(params or {})
    return f"{base_url}?{query}" if query else base_url


def fetch_json(url: str, *, timeout_seconds: float) -> tuple[int, dict[str, Any]]:
    """
    GET `url` and decode a JSON object body.

    HTTP error statuses are returned with their decoded body so callers can
    surface provider error messages. Transport failures raise `HttpJsonError`.
    """
    request = Request(
        url,
        headers={
            "accept": "application/json",
            "user-agent": USER_AGENT,
        },
        method="GET",
    )

    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            status_code = int(response.getcode() or 0)
            raw_body = response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        status_code = int(exc.code)
        raw_body = exc.read().decode("utf-8", errors="replace")
    except (URLError, TimeoutError, OSError) as exc:
        raise HttpJsonError(f"request failed: {exc}") from exc

    return status_code, parse_json_dict(raw_body)


def parse_json_dict(raw_body: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return {}
    if not isinstance(parsed, dict):
        return {}

    raw_dict = cast(dict[object, object], parsed)
    payload: dict[str, Any] = {}
    for key, value in raw_dict.items():
        if isinstance(key, str):
            payload[key] = value
    return payload


def default_fetcher(timeout_seconds: float) -> JsonFetcher:
    def _fetch(url: str) -> tuple[int, dict[str, Any]]:
        return fetch_json(url, timeout_seconds=timeout_seconds)

    return _fetch
