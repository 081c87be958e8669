"""OpenAI Chat Completions -> upstream conversation translation.

Provides the request side of the proxy: model aliasing, content extraction,
conversation folding, tool declarations, generation config and the final
request envelope.
"""

from .content import ExtractedContent, decode_image_data_uri, extract_content
from .conversation import translate_messages
from .generation import build_generation_config
from .models import is_image_model, is_thinking_enabled, resolve_model_name
from .request import build_request_envelope, resolve_system_instruction
from .tools import convert_tools

__all__ = [
    "ExtractedContent",
    "build_generation_config",
    "build_request_envelope",
    "convert_tools",
    "decode_image_data_uri",
    "extract_content",
    "is_image_model",
    "is_thinking_enabled",
    "resolve_model_name",
    "resolve_system_instruction",
    "translate_messages",
]
