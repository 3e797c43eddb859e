"""Turn ShipTrack error bodies into one-line messages for Locust.

FastAPI request validation answers 422 with a list under ``detail``;
webhook rejections and route errors carry a string ``detail``; domain
errors from protean carry ``error``, either a string or a field map.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

_LIMIT = 300


def _field_errors(errors: dict) -> str:
    parts = []
    for field, messages in errors.items():
        if isinstance(messages, list):
            messages = ", ".join(map(str, messages))
        parts.append(f"{field}: {messages}")
    return " | ".join(parts)


def _request_errors(errors: list) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(p) for p in err.get("loc", []) if p != "body")
        parts.append(f"{location}: {err.get('msg', err)}" if location else str(err.get("msg", err)))
    return " | ".join(parts)


def extract_error_detail(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (getattr(response, "text", "") or "(empty response body)")[:_LIMIT]

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, list):
            return _request_errors(detail)
        if isinstance(detail, str):
            return detail

        error = body.get("error")
        if isinstance(error, dict):
            return _field_errors(error)
        if error is not None:
            return str(error)

    return str(body)[:_LIMIT]
