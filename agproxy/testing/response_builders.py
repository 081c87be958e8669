"""Builders for OpenAI requests and Cloud Code upstream payloads."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional


def build_openai_request(
    messages: Optional[list[dict[str, Any]]] = None,
    *,
    model: str = "gemini-2.5-flash",
    stream: bool = False,
    **extra: Any,
) -> dict[str, Any]:
    """Build an OpenAI chat completions request body."""
    body: dict[str, Any] = {
        "model": model,
        "messages": messages if messages is not None else [{"role": "user", "content": "Hello"}],
        "stream": stream,
    }
    body.update(extra)
    return body


def build_cloudcode_chunk(parts: list[dict[str, Any]], *, wrapped: bool = True) -> dict[str, Any]:
    """Build one ``streamGenerateContent`` payload holding ``parts``."""
    inner = {"candidates": [{"content": {"role": "model", "parts": parts}}]}
    return {"response": inner} if wrapped else inner


def build_cloudcode_sse(chunks: Iterable[dict[str, Any]]) -> bytes:
    """Encode payloads the way the upstream streams them (``alt=sse``)."""
    return b"".join(
        f"data: {json.dumps(chunk, ensure_ascii=False)}\r\n\r\n".encode("utf-8")
        for chunk in chunks
    )


def parse_sse_chunks(body: bytes | str) -> tuple[list[dict[str, Any]], bool]:
    """Split an SSE body into decoded chunks and whether ``[DONE]`` was seen."""
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    chunks: list[dict[str, Any]] = []
    done = False
    for line in text.splitlines():
        if not line.startswith("data: "):
            continue
        data = line[len("data: "):]
        if data == "[DONE]":
            done = True
            continue
        chunks.append(json.loads(data))
    return chunks, done
