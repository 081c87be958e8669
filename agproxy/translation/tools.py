"""OpenAI tools -> upstream function declarations."""

from __future__ import annotations

import copy
import logging
from typing import Any, Mapping, Optional, Sequence

logger = logging.getLogger("agproxy")

# JSON schema keys the upstream rejects inside declaration parameters.
UNSUPPORTED_SCHEMA_KEYS = ("$schema",)


def _clean_parameters(parameters: Mapping[str, Any]) -> dict[str, Any]:
    cleaned = copy.deepcopy(dict(parameters))
    for key in UNSUPPORTED_SCHEMA_KEYS:
        cleaned.pop(key, None)
    return cleaned


def convert_tools(tools: Optional[Sequence[Mapping[str, Any]]]) -> list[dict[str, Any]]:
    """Convert OpenAI tools to upstream tool declarations.

    OpenAI: {"type": "function", "function": {"name", "description", "parameters"}}
    Upstream: {"functionDeclarations": [{"name", "description", "parameters"}]}

    Each client tool becomes its own declaration wrapper. The client's
    parameter schema is copied, never modified in place.
    """
    if not tools:
        return []

    declarations: list[dict[str, Any]] = []
    for tool in tools:
        function = tool.get("function") if isinstance(tool, Mapping) else None
        if not isinstance(function, Mapping):
            logger.warning(f"Skipping tool without a function definition: {tool!r}")
            continue

        declaration: dict[str, Any] = {
            "name": function.get("name", ""),
            "description": function.get("description", ""),
        }
        parameters = function.get("parameters")
        if isinstance(parameters, Mapping):
            declaration["parameters"] = _clean_parameters(parameters)
        declarations.append({"functionDeclarations": [declaration]})

    return declarations
