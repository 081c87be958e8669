"""Core module initialization."""

from .errors import ErrorPayload, classify_error, error_body
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialUnavailableError,
    ProxyError,
    UpstreamError,
)
from .registry import ProxyContext, get_context, set_context
from .sse import SSE_DONE, extract_stream_error, format_sse_data, iter_sse_json

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "CredentialUnavailableError",
    "ErrorPayload",
    "ProxyContext",
    "ProxyError",
    "SSE_DONE",
    "UpstreamError",
    "classify_error",
    "error_body",
    "extract_stream_error",
    "format_sse_data",
    "get_context",
    "iter_sse_json",
    "set_context",
]
