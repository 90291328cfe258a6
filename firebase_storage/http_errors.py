"""HTTP error helpers for extracting storage API error details."""

from __future__ import annotations

import json
from typing import Any

import aiohttp


async def extract_error_detail(response: aiohttp.ClientResponse) -> str | None:
    """Extract the error message from a storage API error response.

    The API reports failures as ``{"error": {"code": ..., "message": ...}}``;
    anything else is returned as raw text.
    """
    text = await response.text(errors="replace")
    if not text:
        return None
    try:
        payload: Any = json.loads(text)
    except ValueError:
        return text

    if not isinstance(payload, dict):
        return str(payload)

    error_payload = payload.get("error", payload)
    if not isinstance(error_payload, dict):
        return str(error_payload)

    return error_payload.get("message") or str(error_payload)
