"""Context registry for breaking circular imports.

This module holds the per-process collaborators (settings, credential
provider, upstream invoker) so that routes can reach them without importing
the application module.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..settings import ProxySettings
    from ..upstream.base import CredentialProvider, UpstreamInvoker


@dataclass(frozen=True)
class ProxyContext:
    settings: "ProxySettings"
    credential_provider: "CredentialProvider"
    invoker: "UpstreamInvoker"


# Global context instance - set by create_app() during initialization
_context: Optional[ProxyContext] = None


def set_context(context: Optional[ProxyContext]) -> None:
    """Set the global proxy context."""
    global _context
    _context = context


def get_context() -> ProxyContext:
    """Get the global proxy context."""
    if _context is None:
        raise RuntimeError("Proxy context not initialized. Did you call create_app()?")
    return _context
