"""SSE (Server-Sent Events) encoding, decoding and error detection."""

import json
import logging
from typing import Any, AsyncIterator, Optional

logger = logging.getLogger("agproxy")

SSE_DONE = b"data: [DONE]\n\n"


def format_sse_data(data: Any) -> bytes:
    """Encode one payload as a ``data: <json>`` SSE event."""
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n".encode("utf-8")


def extract_stream_error(payload: Any) -> Optional[str]:
    """
    Check a decoded SSE payload for an in-stream error event.

    Returns an error message if an error is detected, None otherwise.

    Detects patterns like:
    - Typed: {"type":"error","error":{...}}
    - Generic: {"error":{"code":429,"message":"...","status":"RESOURCE_EXHAUSTED"}}
    """
    if not isinstance(payload, dict):
        return None

    if payload.get("type") == "error":
        error_obj = payload.get("error")
        if not isinstance(error_obj, dict):
            return f"SSE stream error: {error_obj or 'unknown error'}"
        error_msg = error_obj.get("message") or str(error_obj)
        http_code = error_obj.get("http_code", error_obj.get("code", "unknown"))
        return f"SSE stream error: {error_msg} (http_code={http_code})"

    error_obj = payload.get("error")
    if isinstance(error_obj, dict):
        error_msg = error_obj.get("message") or str(error_obj)
        status = error_obj.get("status") or error_obj.get("type", "unknown")
        code = error_obj.get("code")
        suffix = f"{code} {status}" if code is not None else status
        return f"SSE stream error: {error_msg} ({suffix})"

    return None


async def iter_sse_json(lines: AsyncIterator[str]) -> AsyncIterator[dict[str, Any]]:
    """Decode ``data:`` lines into JSON objects.

    Blank lines, comments and non-JSON payloads are skipped. ``[DONE]`` ends
    the iteration.
    """
    async for line in lines:
        raw = (line or "").strip()
        if not raw.startswith("data:"):
            continue
        data = raw[len("data:"):].strip()
        if not data:
            continue
        if data == "[DONE]":
            break
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"Skipping undecodable SSE payload: {data[:100]}")
            continue
        if isinstance(parsed, dict):
            yield parsed
