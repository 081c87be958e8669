"""Interfaces of the external collaborators the translator talks to.

The proxy core never obtains credentials or opens upstream connections by
itself. It reads a ``Credential`` from a ``CredentialProvider`` and hands the
translated envelope to an ``UpstreamInvoker``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Literal, Optional, Protocol

EventType = Literal["text", "thinking", "tool_calls"]


@dataclass(frozen=True)
class Credential:
    access_token: str
    project_id: Optional[str] = None
    session_id: Optional[str] = None


@dataclass(frozen=True)
class UpstreamEvent:
    """One provider-native event, already split into text, reasoning or tool calls."""

    type: EventType
    content: str = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def text(cls, content: str) -> "UpstreamEvent":
        return cls("text", content=content)

    @classmethod
    def thinking(cls, content: str) -> "UpstreamEvent":
        return cls("thinking", content=content)

    @classmethod
    def calls(cls, tool_calls: list[dict[str, Any]]) -> "UpstreamEvent":
        return cls("tool_calls", tool_calls=list(tool_calls))


@dataclass
class AssistantReply:
    """Assembled result of a non-streaming upstream call."""

    content: str = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)
    reasoning_content: str = ""


class CredentialProvider(Protocol):
    async def get_credential(self) -> Optional[Credential]:
        ...


class UpstreamInvoker(Protocol):
    def stream(
        self, envelope: dict[str, Any], credential: Credential
    ) -> AsyncIterator[UpstreamEvent]:
        ...

    async def generate(
        self, envelope: dict[str, Any], credential: Credential
    ) -> AssistantReply:
        ...

    async def list_models(self, credential: Credential) -> dict[str, Any]:
        ...
