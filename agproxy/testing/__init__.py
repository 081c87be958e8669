"""Testing utilities for in-process proxy tests."""

from .assertions import assert_chat_chunks_valid, assert_openai_chat_valid
from .fake_upstream import FakeCredentialProvider, FakeInvoker, StreamError
from .response_builders import (
    build_cloudcode_chunk,
    build_cloudcode_sse,
    build_openai_request,
    parse_sse_chunks,
)

__all__ = [
    # Fakes
    "FakeCredentialProvider",
    "FakeInvoker",
    "StreamError",
    # Builders
    "build_cloudcode_chunk",
    "build_cloudcode_sse",
    "build_openai_request",
    "parse_sse_chunks",
    # Assertions
    "assert_chat_chunks_valid",
    "assert_openai_chat_valid",
]
