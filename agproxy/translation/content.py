"""Split OpenAI message content into plain text and inline images."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger("agproxy")

DATA_URI_RE = re.compile(r"^data:image/(\w+);base64,(.+)$")


@dataclass
class ExtractedContent:
    text: str = ""
    images: list[dict[str, Any]] = field(default_factory=list)


def decode_image_data_uri(url: str) -> Optional[dict[str, Any]]:
    """Convert ``data:image/<fmt>;base64,<data>`` into an upstream inline image.

    Returns None when the URI is not a base64 image data URI.
    """
    match = DATA_URI_RE.match(url or "")
    if not match:
        return None
    image_format, data = match.groups()
    return {"inlineData": {"mimeType": f"image/{image_format}", "data": data}}


def _image_url_of(part: dict[str, Any]) -> str:
    image = part.get("image_url")
    if isinstance(image, dict):
        url = image.get("url")
        return url if isinstance(url, str) else ""
    if isinstance(image, str):
        return image
    return ""


def extract_content(content: Any) -> ExtractedContent:
    """Extract text and base64 images from a message's ``content``.

    String content is returned verbatim. For multimodal content, text parts
    are concatenated in order and every ``image_url`` part holding a base64
    image data URI is decoded. Other image references (remote URLs, malformed
    data URIs) are skipped without error.
    """
    result = ExtractedContent()

    if isinstance(content, str):
        result.text = content
        return result

    if not isinstance(content, list):
        return result

    for item in content:
        if not isinstance(item, dict):
            continue
        item_type = item.get("type")
        if item_type == "text":
            text = item.get("text")
            if isinstance(text, str):
                result.text += text
        elif item_type == "image_url":
            image = decode_image_data_uri(_image_url_of(item))
            if image is None:
                logger.debug("Skipping image_url part that is not a base64 image data URI")
                continue
            result.images.append(image)

    return result
