"""Upstream reply -> OpenAI Chat Completions response relay."""

from .stream_relay import (
    ChatCompletionStreamRelay,
    ResponseMeta,
    build_chat_completion,
    event_to_delta,
    prime_events,
    single_event,
)

__all__ = [
    "ChatCompletionStreamRelay",
    "ResponseMeta",
    "build_chat_completion",
    "event_to_delta",
    "prime_events",
    "single_event",
]
