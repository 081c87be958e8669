"""Relay upstream events to OpenAI Chat Completions responses.

Streaming output, one SSE event per upstream event:

    data: {"id":"chatcmpl-..","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"reasoning_content":"..."},"finish_reason":null}]}
    data: {"id":"chatcmpl-..","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":"..."},"finish_reason":null}]}
    data: {"id":"chatcmpl-..","object":"chat.completion.chunk","choices":[{"index":0,"delta":{"tool_calls":[...]},"finish_reason":null}]}
    data: {"id":"chatcmpl-..","object":"chat.completion.chunk","choices":[{"index":0,"delta":{},"finish_reason":"tool_calls"}]}
    data: [DONE]

Every chunk of one response shares the same id, created and model. Events
are written in the order the upstream yields them, without batching.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from ..core.sse import SSE_DONE, format_sse_data
from ..upstream.base import AssistantReply, UpstreamEvent

logger = logging.getLogger("agproxy")

T = TypeVar("T")

DisconnectChecker = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class ResponseMeta:
    """Identity shared by every chunk of one response."""

    id: str
    created: int

    @classmethod
    def create(cls) -> "ResponseMeta":
        return cls(id=f"chatcmpl-{uuid.uuid4().hex}", created=int(time.time()))


def event_to_delta(event: UpstreamEvent) -> dict[str, Any]:
    """Translate one upstream event into a chunk delta.

    Reasoning text and answer text always land in separate fields.
    """
    if event.type == "tool_calls":
        return {"tool_calls": event.tool_calls}
    if event.type == "thinking":
        return {"reasoning_content": event.content}
    return {"content": event.content}


def error_delta(exc: BaseException) -> dict[str, Any]:
    return {"content": f"\n\n[System Error: {exc}]"}


class ChatCompletionStreamRelay:
    """Re-emits an upstream event sequence as OpenAI chat completion chunks.

    The relay tracks whether any tool-call delta was sent so the terminal
    chunk can carry the right finish reason. A failure after the first byte
    has been written cannot change the HTTP status any more, so it is
    reported in-band as a content delta and the stream ends normally.
    """

    def __init__(self, meta: ResponseMeta, model: str) -> None:
        """Initialize the relay.

        Args:
            meta: Response identity reused for every chunk.
            model: Client-facing model name echoed in every chunk.
        """
        self.meta = meta
        self.model = model

        self.saw_tool_call = False
        self.failed = False
        self.cancelled = False
        self.chunk_count = 0

    async def relay(
        self,
        events: AsyncIterator[UpstreamEvent],
        disconnect_checker: Optional[DisconnectChecker] = None,
    ) -> AsyncIterator[bytes]:
        """Transform upstream events into SSE bytes.

        Args:
            events: Upstream event sequence. It is closed when the relay
                finishes, fails or the client goes away.
            disconnect_checker: Optional callback; when it reports a
                disconnect, no further chunks are written.

        Yields:
            SSE formatted chunks, the terminal chunk and ``[DONE]``.
        """
        try:
            try:
                async for event in events:
                    if disconnect_checker and await disconnect_checker():
                        self.cancelled = True
                        logger.info(
                            f"Client disconnected from {self.meta.id} after {self.chunk_count} chunks"
                        )
                        return
                    if event.type == "tool_calls":
                        self.saw_tool_call = True
                    yield self._emit_delta(event_to_delta(event))
            except Exception as exc:
                self.failed = True
                logger.error(f"Stream {self.meta.id} failed after headers were sent: {exc}")
                yield self._emit_delta(error_delta(exc))

            for chunk in self._emit_terminal_events():
                yield chunk
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    def finish_reason(self) -> str:
        if self.saw_tool_call and not self.failed:
            return "tool_calls"
        return "stop"

    def build_chunk(
        self, delta: dict[str, Any], finish_reason: Optional[str] = None
    ) -> dict[str, Any]:
        return {
            "id": self.meta.id,
            "object": "chat.completion.chunk",
            "created": self.meta.created,
            "model": self.model,
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }

    def _emit_delta(self, delta: dict[str, Any]) -> bytes:
        self.chunk_count += 1
        return format_sse_data(self.build_chunk(delta))

    def _emit_terminal_events(self) -> list[bytes]:
        finish_reason = self.finish_reason()
        logger.debug(
            f"Stream {self.meta.id} finished with {finish_reason} after {self.chunk_count} chunks"
        )
        return [format_sse_data(self.build_chunk({}, finish_reason)), SSE_DONE]


def build_chat_completion(
    meta: ResponseMeta, model: str, reply: AssistantReply
) -> dict[str, Any]:
    """Build the non-streaming ``chat.completion`` object.

    ``tool_calls`` and ``reasoning_content`` are only present when non-empty.
    """
    message: dict[str, Any] = {"role": "assistant", "content": reply.content}
    if reply.tool_calls:
        message["tool_calls"] = reply.tool_calls
    if reply.reasoning_content:
        message["reasoning_content"] = reply.reasoning_content

    return {
        "id": meta.id,
        "object": "chat.completion",
        "created": meta.created,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": message,
                "finish_reason": "tool_calls" if reply.tool_calls else "stop",
            }
        ],
    }


async def prime_events(events: AsyncIterator[T]) -> AsyncIterator[T]:
    """Pull the first event before any response byte is written.

    Failures raised while opening the upstream stream propagate from this
    call, so the caller can still answer with a JSON error and a real status
    code. The returned iterator replays the first event, then the rest.
    """
    iterator = events.__aiter__()
    try:
        first = await iterator.__anext__()
    except StopAsyncIteration:
        return _replay((), iterator)
    return _replay((first,), iterator)


async def _replay(head: tuple, rest: AsyncIterator[T]) -> AsyncIterator[T]:
    try:
        for item in head:
            yield item
        async for item in rest:
            yield item
    finally:
        aclose = getattr(rest, "aclose", None)
        if aclose is not None:
            await aclose()


async def single_event(event: UpstreamEvent) -> AsyncIterator[UpstreamEvent]:
    yield event
