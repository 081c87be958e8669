"""Tests for the Cloud Code invoker over a mocked transport."""

import json

import httpx
import pytest

from agproxy.core.exceptions import UpstreamError
from agproxy.settings import UpstreamSettings
from agproxy.testing import build_cloudcode_chunk, build_cloudcode_sse
from agproxy.upstream.client import CloudCodeInvoker, parts_to_events

ENVELOPE = {"project": "test-project", "model": "gemini-2.5-pro", "request": {"contents": []}}


class RecordingHandler:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def _invoker(handler) -> CloudCodeInvoker:
    settings = UpstreamSettings(base_url="https://upstream.test", user_agent="agproxy-test/1.0")
    return CloudCodeInvoker(settings, transport=httpx.MockTransport(handler))


def _sse_response(chunks, status_code=200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=build_cloudcode_sse(chunks),
        headers={"content-type": "text/event-stream"},
    )


class TestPartsToEvents:
    """Tests for splitting upstream parts into events."""

    def test_thought_text_and_calls(self):
        """Test each part kind and grouping of adjacent calls."""
        events = parts_to_events(
            [
                {"text": "thinking...", "thought": True},
                {"text": "Answer"},
                {"functionCall": {"name": "a", "args": {"x": 1}, "id": "call_a"}},
                {"functionCall": {"name": "b", "args": {}}},
            ]
        )
        assert [e.type for e in events] == ["thinking", "text", "tool_calls"]
        calls = events[2].tool_calls
        assert [c["index"] for c in calls] == [0, 1]
        assert calls[0] == {
            "index": 0,
            "id": "call_a",
            "type": "function",
            "function": {"name": "a", "arguments": '{"x": 1}'},
        }
        assert calls[1]["id"].startswith("call_")
        assert calls[1]["function"]["arguments"] == "{}"

    def test_inline_image_becomes_markdown(self):
        """Test that generated images are returned as markdown text."""
        events = parts_to_events([{"inlineData": {"mimeType": "image/png", "data": "QUJD"}}])
        assert events[0].type == "text"
        assert events[0].content == "![image](data:image/png;base64,QUJD)"

    def test_skips_empty_text(self):
        """Test that empty text parts produce no event."""
        assert parts_to_events([{"text": ""}, {"thoughtSignature": "abc"}]) == []

    def test_call_index_offset(self):
        """Test that call indices continue from the given offset."""
        events = parts_to_events([{"functionCall": {"name": "a"}}], first_call_index=3)
        assert events[0].tool_calls[0]["index"] == 3


class TestCloudCodeInvokerStream:
    """Tests for streamGenerateContent."""

    @pytest.mark.asyncio
    async def test_streams_events_in_order(self, credential):
        """Test request shape and event order."""
        handler = RecordingHandler(
            _sse_response(
                [
                    build_cloudcode_chunk([{"text": "hmm", "thought": True}]),
                    build_cloudcode_chunk([{"text": "Hel"}]),
                    build_cloudcode_chunk([{"text": "lo"}], wrapped=False),
                ]
            )
        )
        invoker = _invoker(handler)
        events = [e async for e in invoker.stream(ENVELOPE, credential)]
        await invoker.aclose()

        assert [(e.type, e.content) for e in events] == [("thinking", "hmm"), ("text", "Hel"), ("text", "lo")]

        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1internal:streamGenerateContent"
        assert request.url.params["alt"] == "sse"
        assert request.headers["authorization"] == "Bearer test-token"
        assert request.headers["user-agent"] == "agproxy-test/1.0"
        assert request.headers["accept"] == "text/event-stream"
        assert json.loads(request.content) == ENVELOPE

    @pytest.mark.asyncio
    async def test_call_indices_unique_across_chunks(self, credential):
        """Test that tool call indices keep counting across chunks."""
        handler = RecordingHandler(
            _sse_response(
                [
                    build_cloudcode_chunk([{"functionCall": {"name": "a", "args": {}}}]),
                    build_cloudcode_chunk([{"functionCall": {"name": "b", "args": {}}}]),
                ]
            )
        )
        invoker = _invoker(handler)
        events = [e async for e in invoker.stream(ENVELOPE, credential)]
        await invoker.aclose()
        assert [e.tool_calls[0]["index"] for e in events] == [0, 1]

    @pytest.mark.asyncio
    async def test_http_error_raises_upstream_error(self, credential):
        """Test that non-2xx responses carry status and body."""
        handler = RecordingHandler(httpx.Response(429, text='{"error": "RESOURCE_EXHAUSTED"}'))
        invoker = _invoker(handler)
        with pytest.raises(UpstreamError) as excinfo:
            [e async for e in invoker.stream(ENVELOPE, credential)]
        await invoker.aclose()
        assert excinfo.value.status_code == 429
        assert str(excinfo.value).startswith("429 ")
        assert "RESOURCE_EXHAUSTED" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_in_stream_error_raises(self, credential):
        """Test that an error payload inside the stream is raised."""
        handler = RecordingHandler(
            _sse_response(
                [
                    build_cloudcode_chunk([{"text": "partial"}]),
                    {"error": {"code": 503, "message": "backend overloaded", "status": "UNAVAILABLE"}},
                ]
            )
        )
        invoker = _invoker(handler)
        received = []
        with pytest.raises(UpstreamError, match="backend overloaded"):
            async for event in invoker.stream(ENVELOPE, credential):
                received.append(event.content)
        await invoker.aclose()
        assert received == ["partial"]

    @pytest.mark.asyncio
    async def test_generate_accumulates(self, credential):
        """Test that generate joins text, reasoning and tool calls."""
        handler = RecordingHandler(
            _sse_response(
                [
                    build_cloudcode_chunk([{"text": "a", "thought": True}, {"text": "Hel"}]),
                    build_cloudcode_chunk([{"text": "lo"}, {"functionCall": {"name": "f", "args": {"q": "x"}}}]),
                ]
            )
        )
        invoker = _invoker(handler)
        reply = await invoker.generate(ENVELOPE, credential)
        await invoker.aclose()
        assert reply.content == "Hello"
        assert reply.reasoning_content == "a"
        assert reply.tool_calls[0]["function"] == {"name": "f", "arguments": '{"q": "x"}'}


class TestCloudCodeInvokerListModels:
    """Tests for fetchAvailableModels."""

    @pytest.mark.asyncio
    async def test_models_mapping(self, credential):
        """Test that a models mapping becomes an OpenAI model list."""
        handler = RecordingHandler(
            httpx.Response(200, json={"models": {"gemini-2.5-flash": {}, "claude-sonnet-4-5": {}}})
        )
        invoker = _invoker(handler)
        result = await invoker.list_models(credential)
        await invoker.aclose()

        assert result["object"] == "list"
        assert [m["id"] for m in result["data"]] == ["gemini-2.5-flash", "claude-sonnet-4-5"]
        assert all(m["object"] == "model" and m["owned_by"] == "google" for m in result["data"])

        request = handler.requests[0]
        assert request.url.path == "/v1internal:fetchAvailableModels"
        assert json.loads(request.content) == {"project": "test-project"}
        assert request.headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_models_list(self, credential):
        """Test that a models list is accepted too."""
        handler = RecordingHandler(httpx.Response(200, json={"models": [{"id": "a"}, {"name": "b"}, "c"]}))
        invoker = _invoker(handler)
        result = await invoker.list_models(credential)
        await invoker.aclose()
        assert [m["id"] for m in result["data"]] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_models_error(self, credential):
        """Test that a failed listing raises."""
        invoker = _invoker(RecordingHandler(httpx.Response(401, text="unauthorized")))
        with pytest.raises(UpstreamError, match="401 unauthorized"):
            await invoker.list_models(credential)
        await invoker.aclose()
