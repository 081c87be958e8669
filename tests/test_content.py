"""Tests for message content extraction."""

from agproxy.translation.content import decode_image_data_uri, extract_content


class TestDecodeImageDataUri:
    """Tests for base64 image data URI decoding."""

    def test_decodes_png(self):
        """Test that format and payload are split out."""
        assert decode_image_data_uri("data:image/png;base64,QUJD") == {
            "inlineData": {"mimeType": "image/png", "data": "QUJD"}
        }

    def test_rejects_remote_url(self):
        """Test that http URLs are not decoded."""
        assert decode_image_data_uri("https://example.com/cat.png") is None

    def test_rejects_missing_payload(self):
        """Test that a data URI without data is not decoded."""
        assert decode_image_data_uri("data:image/png;base64,") is None

    def test_rejects_non_image_mime(self):
        """Test that non-image data URIs are not decoded."""
        assert decode_image_data_uri("data:text/plain;base64,QUJD") is None


class TestExtractContent:
    """Tests for extract_content."""

    def test_string_content_verbatim(self):
        """Test that string content is returned as-is."""
        result = extract_content("  hello\n")
        assert result.text == "  hello\n"
        assert result.images == []

    def test_concatenates_text_parts_in_order(self):
        """Test that text parts are joined without separators."""
        result = extract_content(
            [{"type": "text", "text": "Hello, "}, {"type": "text", "text": "world"}]
        )
        assert result.text == "Hello, world"

    def test_mixed_text_and_images(self):
        """Test a multimodal message with one valid and one skipped image."""
        result = extract_content(
            [
                {"type": "text", "text": "Look:"},
                {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,/9j/4AAQ"}},
                {"type": "image_url", "image_url": {"url": "https://example.com/remote.png"}},
            ]
        )
        assert result.text == "Look:"
        assert result.images == [{"inlineData": {"mimeType": "image/jpeg", "data": "/9j/4AAQ"}}]

    def test_image_url_as_string(self):
        """Test that image_url may be a bare string."""
        result = extract_content([{"type": "image_url", "image_url": "data:image/gif;base64,R0lG"}])
        assert result.images == [{"inlineData": {"mimeType": "image/gif", "data": "R0lG"}}]

    def test_none_and_unknown_content(self):
        """Test that None or unexpected content gives empty text."""
        assert extract_content(None).text == ""
        assert extract_content(42).text == ""

    def test_skips_non_dict_parts(self):
        """Test that garbage list entries are ignored."""
        result = extract_content(["oops", {"type": "text", "text": "ok"}])
        assert result.text == "ok"
