"""Assemble the upstream request envelope for one chat completion."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional, Sequence

from ..settings import TranslationDefaults
from ..upstream.base import Credential
from .content import extract_content
from .conversation import translate_messages
from .generation import build_generation_config, build_image_generation_config
from .models import is_image_model, is_thinking_enabled, resolve_model_name
from .tools import convert_tools

logger = logging.getLogger("agproxy")

USER_AGENT = "antigravity"
IMAGE_REQUEST_TYPE = "image_gen"
TOOL_CONFIG = {"functionCallingConfig": {"mode": "VALIDATED"}}


def generate_request_id() -> str:
    return f"agent-{uuid.uuid4()}"


def resolve_system_instruction(
    messages: Sequence[Mapping[str, Any]], default: str
) -> str:
    """First client ``system`` message wins, otherwise the configured default."""
    for message in messages:
        if isinstance(message, Mapping) and message.get("role") == "system":
            return extract_content(message.get("content")).text
    return default


def build_request_envelope(
    messages: Sequence[Mapping[str, Any]],
    model_name: str,
    params: Mapping[str, Any],
    tools: Optional[Sequence[Mapping[str, Any]]],
    credential: Credential,
    defaults: TranslationDefaults,
) -> dict[str, Any]:
    """Translate an OpenAI chat request into the upstream envelope.

    Reasoning is decided on the client-facing model name; everything sent
    upstream uses the resolved name. Image models drop the system
    instruction and tool configuration and request a single candidate.

    Args:
        messages: OpenAI chat messages.
        model_name: Client-facing model name.
        params: Remaining sampling fields of the request body.
        tools: OpenAI tool definitions, if any.
        credential: Supplies the project and session identifiers.
        defaults: Translation defaults from the configuration.

    Returns:
        A fresh envelope dict; nothing in it is shared with other requests.
    """
    enable_thinking = is_thinking_enabled(model_name)
    actual_model = resolve_model_name(model_name)
    system_instruction = resolve_system_instruction(messages, defaults.system_instruction)

    request: dict[str, Any] = {
        "contents": translate_messages(messages, merge_tool_results=defaults.merge_tool_results),
        "systemInstruction": {"role": "user", "parts": [{"text": system_instruction or ""}]},
        "tools": convert_tools(tools),
        "toolConfig": {"functionCallingConfig": dict(TOOL_CONFIG["functionCallingConfig"])},
        "generationConfig": build_generation_config(params, enable_thinking, actual_model, defaults),
        "sessionId": credential.session_id,
    }
    envelope: dict[str, Any] = {
        "project": credential.project_id,
        "requestId": generate_request_id(),
        "request": request,
        "model": actual_model,
        "userAgent": USER_AGENT,
    }

    if is_image_model(model_name):
        request["generationConfig"] = build_image_generation_config()
        envelope["requestType"] = IMAGE_REQUEST_TYPE
        del request["systemInstruction"]
        del request["tools"]
        del request["toolConfig"]

    logger.debug(
        f"Built upstream request {envelope['requestId']} for model {actual_model} "
        f"(thinking={enable_thinking}, turns={len(request['contents'])})"
    )
    return envelope
