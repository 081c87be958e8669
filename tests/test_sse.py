"""Tests for the SSE module."""

import pytest

from agproxy.core.sse import SSE_DONE, extract_stream_error, format_sse_data, iter_sse_json


async def _lines(*lines):
    for line in lines:
        yield line


class TestFormatSseData:
    """Tests for SSE encoding."""

    def test_encodes_json_event(self):
        """Test the data line framing."""
        assert format_sse_data({"a": 1}) == b'data: {"a": 1}\n\n'

    def test_keeps_unicode(self):
        """Test that non-ASCII text is not escaped."""
        assert "日本".encode("utf-8") in format_sse_data({"t": "日本"})

    def test_done_sentinel(self):
        """Test the terminator bytes."""
        assert SSE_DONE == b"data: [DONE]\n\n"


class TestExtractStreamError:
    """Tests for in-stream error detection."""

    def test_returns_none_for_normal_payload(self):
        """Test that a candidate payload is not an error."""
        assert extract_stream_error({"response": {"candidates": []}}) is None

    def test_returns_none_for_non_dict(self):
        """Test that non-dict payloads are ignored."""
        assert extract_stream_error("just a string") is None

    def test_detects_typed_error(self):
        """Test that typed error events are detected."""
        result = extract_stream_error({"type": "error", "error": {"message": "test error", "http_code": 500}})
        assert "test error" in result
        assert "http_code=500" in result

    def test_detects_typed_error_with_string_body(self):
        """Test that a typed error with a bare string is reported."""
        assert "overloaded" in extract_stream_error({"type": "error", "error": "overloaded"})

    def test_detects_google_error(self):
        """Test that Google-style errors keep the status for classification."""
        result = extract_stream_error(
            {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
        )
        assert "Quota exceeded" in result
        assert "RESOURCE_EXHAUSTED" in result


class TestIterSseJson:
    """Tests for SSE line decoding."""

    @pytest.mark.asyncio
    async def test_decodes_data_lines(self):
        """Test that only data lines with JSON objects are yielded."""
        lines = _lines(": keep-alive", "", 'data: {"a": 1}', "data: not json", "data: [1, 2]", 'data:{"b": 2}')
        assert [p async for p in iter_sse_json(lines)] == [{"a": 1}, {"b": 2}]

    @pytest.mark.asyncio
    async def test_stops_at_done(self):
        """Test that [DONE] ends iteration."""
        lines = _lines('data: {"a": 1}', "data: [DONE]", 'data: {"b": 2}')
        assert [p async for p in iter_sse_json(lines)] == [{"a": 1}]
