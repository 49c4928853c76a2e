"""Response error extraction for load test observability.

Parses ordering API error responses into human-readable messages. Every error
body has the shape ``{"error": "msg"}`` or ``{"error": {"field": ["msg", ...]}}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response


def extract_error_detail(response: Response) -> str:
    """Extract a human-readable error message from an API error response.

    Returns a compact string suitable for Locust failure messages and log lines.
    Gracefully handles unparseable bodies and missing fields.
    """
    try:
        body = response.json()
    except Exception:
        # Not JSON, return raw text truncated
        text = getattr(response, "text", "") or ""
        return text[:300] or "(empty response body)"

    if isinstance(body, dict) and "error" in body:
        error = body["error"]
        if isinstance(error, dict):
            parts = []
            for name, messages in error.items():
                if isinstance(messages, list):
                    messages = "; ".join(str(m) for m in messages)
                parts.append(f"{name}: {messages}")
            return " | ".join(parts)
        return str(error)

    # Unknown shape: stringify and truncate
    return str(body)[:300]
