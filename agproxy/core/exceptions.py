"""Core exceptions for the proxy."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for proxy errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class AuthenticationError(ProxyError):
    """Raised when the client API key does not match."""

    status_code = 401


class CredentialUnavailableError(ProxyError):
    """Raised when no upstream credential could be obtained."""

    DEFAULT_HINT = (
        "No upstream credential available. Set credentials.access_token and "
        "credentials.project_id (or credentials.token_file) in the config, "
        "or export AGPROXY_ACCESS_TOKEN / AGPROXY_PROJECT_ID."
    )

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.DEFAULT_HINT)


class UpstreamError(ProxyError):
    """Raised when the upstream API answers with a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
