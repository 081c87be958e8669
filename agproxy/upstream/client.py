"""httpx client for the Cloud Code ``v1internal`` endpoints."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterable, Optional

import httpx

from ..core.exceptions import UpstreamError
from ..core.sse import extract_stream_error, iter_sse_json
from ..settings import UpstreamSettings
from .base import AssistantReply, Credential, UpstreamEvent

logger = logging.getLogger("agproxy")

STREAM_PATH = "/v1internal:streamGenerateContent?alt=sse"
MODELS_PATH = "/v1internal:fetchAvailableModels"

# Upstream bodies can be large HTML pages; keep error messages readable.
MAX_ERROR_DETAIL = 2000


def _unwrap_response(payload: dict[str, Any]) -> dict[str, Any]:
    inner = payload.get("response")
    if isinstance(inner, dict):
        return inner
    return payload


def _candidate_parts(payload: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = _unwrap_response(payload).get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return []
    content = (candidates[0] or {}).get("content")
    if not isinstance(content, dict):
        return []
    parts = content.get("parts")
    if not isinstance(parts, list):
        return []
    return [part for part in parts if isinstance(part, dict)]


def _tool_call_entry(index: int, call: dict[str, Any]) -> dict[str, Any]:
    return {
        "index": index,
        "id": call.get("id") or f"call_{uuid.uuid4().hex[:24]}",
        "type": "function",
        "function": {
            "name": call.get("name", ""),
            "arguments": json.dumps(call.get("args") or {}, ensure_ascii=False),
        },
    }


def parts_to_events(
    parts: Iterable[dict[str, Any]], first_call_index: int = 0
) -> list[UpstreamEvent]:
    """Split one chunk's parts into text, reasoning and tool-call events.

    Consecutive function calls inside the chunk are grouped into a single
    ``tool_calls`` event; ``first_call_index`` keeps indices unique across
    chunks of the same response.
    """
    events: list[UpstreamEvent] = []
    calls: list[dict[str, Any]] = []
    call_index = first_call_index

    def flush_calls() -> None:
        if calls:
            events.append(UpstreamEvent.calls(calls))
            calls.clear()

    for part in parts:
        function_call = part.get("functionCall")
        if isinstance(function_call, dict):
            calls.append(_tool_call_entry(call_index, function_call))
            call_index += 1
            continue

        flush_calls()
        text = part.get("text")
        if isinstance(text, str):
            if not text:
                continue
            if part.get("thought") is True:
                events.append(UpstreamEvent.thinking(text))
            else:
                events.append(UpstreamEvent.text(text))
            continue

        inline = part.get("inlineData")
        if isinstance(inline, dict) and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            events.append(UpstreamEvent.text(f"![image](data:{mime};base64,{inline['data']})"))

    flush_calls()
    return events


class CloudCodeInvoker:
    """Calls the Cloud Code assist API with an already-issued access token."""

    def __init__(
        self,
        settings: Optional[UpstreamSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the invoker.

        Args:
            settings: Base URL, user agent and timeout.
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``.
        """
        self.settings = settings or UpstreamSettings()
        timeout = self.settings.timeout
        # Reasoning models may stay silent for minutes; streams have no read timeout.
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout),
            transport=transport,
            follow_redirects=False,
        )

    def _headers(self, credential: Credential, *, stream: bool) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credential.access_token}",
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
            "Accept": "text/event-stream" if stream else "application/json",
        }

    @staticmethod
    def _failure(status_code: int, body: bytes) -> UpstreamError:
        detail = body.decode("utf-8", errors="ignore").strip()
        if len(detail) > MAX_ERROR_DETAIL:
            detail = detail[:MAX_ERROR_DETAIL] + "..."
        return UpstreamError(f"{status_code} {detail}".strip(), status_code=status_code)

    async def stream(
        self, envelope: dict[str, Any], credential: Credential
    ) -> AsyncIterator[UpstreamEvent]:
        """Yield events from ``streamGenerateContent`` in arrival order."""
        start_time = time.perf_counter()
        event_count = 0
        call_index = 0

        async with self._client.stream(
            "POST",
            STREAM_PATH,
            json=envelope,
            headers=self._headers(credential, stream=True),
        ) as response:
            if response.status_code < 200 or response.status_code >= 300:
                body = await response.aread()
                raise self._failure(response.status_code, body)

            async with aclosing(iter_sse_json(response.aiter_lines())) as payloads:
                async for payload in payloads:
                    error_message = extract_stream_error(payload)
                    if error_message:
                        raise UpstreamError(error_message)
                    for event in parts_to_events(_candidate_parts(payload), call_index):
                        if event.type == "tool_calls":
                            call_index += len(event.tool_calls)
                        event_count += 1
                        yield event

        logger.debug(
            f"Upstream stream for {envelope.get('model')} finished: "
            f"{event_count} events in {time.perf_counter() - start_time:.3f}s"
        )

    async def generate(
        self, envelope: dict[str, Any], credential: Credential
    ) -> AssistantReply:
        """Collect a whole reply by draining ``stream``."""
        reply = AssistantReply()
        async with aclosing(self.stream(envelope, credential)) as events:
            async for event in events:
                if event.type == "tool_calls":
                    reply.tool_calls.extend(event.tool_calls)
                elif event.type == "thinking":
                    reply.reasoning_content += event.content
                else:
                    reply.content += event.content
        return reply

    async def list_models(self, credential: Credential) -> dict[str, Any]:
        """Fetch the model catalogue available to the credential's project."""
        response = await self._client.post(
            MODELS_PATH,
            json={"project": credential.project_id},
            headers=self._headers(credential, stream=False),
        )
        if response.status_code < 200 or response.status_code >= 300:
            raise self._failure(response.status_code, response.content)

        payload = response.json()
        models = payload.get("models") if isinstance(payload, dict) else None
        if isinstance(models, dict):
            model_ids = list(models.keys())
        elif isinstance(models, list):
            model_ids = [
                (m.get("id") or m.get("name")) if isinstance(m, dict) else m for m in models
            ]
        else:
            model_ids = []

        created = int(time.time())
        return {
            "object": "list",
            "data": [
                {"id": str(model_id), "object": "model", "created": created, "owned_by": "google"}
                for model_id in model_ids
                if model_id
            ],
        }

    async def aclose(self) -> None:
        await self._client.aclose()
