"""Map failures to OpenAI-shaped error payloads and HTTP status codes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .exceptions import CredentialUnavailableError

# Upstream signals capacity problems in the message text rather than the status.
RATE_LIMIT_MARKERS = ("429", "capacity", "RESOURCE_EXHAUSTED")

RATE_LIMIT_CODE = "rate_limit_exceeded"
INTERNAL_ERROR_CODE = "internal_error"


@dataclass(frozen=True)
class ErrorPayload:
    status: int
    body: dict[str, Any]


def _explicit_status(exc: BaseException) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return None


def error_body(message: str, code: str) -> dict[str, Any]:
    """Build ``{"error": {...}}`` in the OpenAI error shape."""
    return {
        "error": {
            "message": message or "Internal Server Error",
            "type": "server_error",
            "param": None,
            "code": code,
        }
    }


def classify_error(exc: BaseException) -> ErrorPayload:
    """Classify a failure raised while serving a chat completion.

    Rules apply in order: missing credential, rate-limit markers in the
    message, an explicit status carried by the exception, then 500.
    """
    message = str(exc)

    if isinstance(exc, CredentialUnavailableError):
        return ErrorPayload(500, error_body(message, INTERNAL_ERROR_CODE))

    if any(marker in message for marker in RATE_LIMIT_MARKERS):
        return ErrorPayload(429, error_body(message, RATE_LIMIT_CODE))

    status = _explicit_status(exc)
    if status is not None:
        code = RATE_LIMIT_CODE if status == 429 else INTERNAL_ERROR_CODE
        return ErrorPayload(status, error_body(message, code))

    return ErrorPayload(500, error_body(message, INTERNAL_ERROR_CODE))
