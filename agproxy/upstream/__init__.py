"""Upstream collaborators: credentials and the Cloud Code invoker."""

from .base import (
    AssistantReply,
    Credential,
    CredentialProvider,
    UpstreamEvent,
    UpstreamInvoker,
)
from .client import CloudCodeInvoker, parts_to_events
from .credentials import StaticCredentialProvider

__all__ = [
    "AssistantReply",
    "CloudCodeInvoker",
    "Credential",
    "CredentialProvider",
    "StaticCredentialProvider",
    "UpstreamEvent",
    "UpstreamInvoker",
    "parts_to_events",
]
