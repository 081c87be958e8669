"""API key authentication for the OpenAI-compatible routes."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from starlette.requests import Request

from ..core.exceptions import AuthenticationError

logger = logging.getLogger("agproxy")

PROTECTED_PREFIX = "/v1/"


class ApiKeyValidator:
    """Checks the client key on every ``/v1/*`` request.

    Accepts ``Authorization: Bearer <key>`` or the bare key as the header
    value. With no key configured every request passes.
    """

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = api_key or None

    def is_enabled(self) -> bool:
        return self.api_key is not None

    def requires_auth(self, path: str) -> bool:
        return self.is_enabled() and path.startswith(PROTECTED_PREFIX)

    @staticmethod
    def extract_key(request: Request) -> Optional[str]:
        header = request.headers.get("Authorization")
        if not header:
            return None
        if header.lower().startswith("bearer "):
            return header[7:].strip()
        return header.strip()

    def validate_request(self, request: Request) -> None:
        """Raise ``AuthenticationError`` when the request carries the wrong key."""
        if not self.requires_auth(request.url.path):
            return

        provided_key = self.extract_key(request)
        # Constant-time comparison of the shared secret
        if provided_key and hmac.compare_digest(provided_key.encode("utf-8"), self.api_key.encode("utf-8")):
            return

        logger.warning(
            f"Request rejected: {'invalid' if provided_key else 'missing'} API key "
            f"for {request.method} {request.url.path}"
        )
        raise AuthenticationError("Invalid API Key")
