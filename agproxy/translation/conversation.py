"""OpenAI chat history -> upstream conversation turns.

The upstream conversation only knows two roles, ``user`` and ``model``.
Client messages map onto them as follows:

- ``user``      -> ``user`` turn, text part followed by inline images
- ``assistant`` -> ``model`` turn with a single text part; requested tool
                   calls are written into that text as notes
- ``tool``      -> ``user`` turn carrying a ``functionResponse`` part. The
                   upstream only accepts tool results from the user side, so
                   tool results are always encoded with the user role.
- ``system``    -> no turn (it becomes the system instruction)

Translation is a left fold over the message list. The fold state carries the
turns produced so far plus an index of tool-call id -> function name, so a
tool result can be paired with the call that produced it without rescanning
earlier turns.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from functools import partial, reduce
from typing import Any, Iterable, Mapping

from .content import extract_content

logger = logging.getLogger("agproxy")

EMPTY_TEXT_PLACEHOLDER = "..."
UNKNOWN_TOOL_NAME = "unknown_tool"


@dataclass(frozen=True)
class ConversationState:
    turns: tuple[dict[str, Any], ...] = ()
    call_names: Mapping[str, str] = field(default_factory=dict)


def _arguments_text(arguments: Any) -> str:
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, ensure_ascii=False)


def format_tool_call_note(tool_call: Mapping[str, Any]) -> str:
    """Render one requested tool call as a note inside the model's text."""
    function = tool_call.get("function") or {}
    name = function.get("name", "")
    arguments = _arguments_text(function.get("arguments", ""))
    return f"[System Note: Model requested tool '{name}' with args: {arguments}]"


def user_turn(message: Mapping[str, Any]) -> dict[str, Any]:
    extracted = extract_content(message.get("content"))
    return {"role": "user", "parts": [{"text": extracted.text}, *extracted.images]}


def model_turn(message: Mapping[str, Any]) -> dict[str, Any]:
    """Build the ``model`` turn for an assistant message.

    Tool calls are appended to the message text as notes, one per line. No
    ``functionCall`` parts are emitted. The turn always has one non-empty text
    part.
    """
    text = extract_content(message.get("content")).text
    tool_calls = message.get("tool_calls") or []
    if tool_calls:
        notes = "\n".join(format_tool_call_note(tc) for tc in tool_calls)
        if text:
            text += "\n"
        text += notes

    if not text.strip():
        text = EMPTY_TEXT_PLACEHOLDER
    return {"role": "model", "parts": [{"text": text}]}


def function_response_part(
    message: Mapping[str, Any], call_names: Mapping[str, str]
) -> dict[str, Any]:
    """Build the ``functionResponse`` part for a tool message.

    The function name comes from the message's ``name``, then from the call
    index by ``tool_call_id``, then falls back to ``unknown_tool``.
    """
    name = message.get("name") or call_names.get(message.get("tool_call_id") or "")
    return {
        "functionResponse": {
            "name": name or UNKNOWN_TOOL_NAME,
            "response": {"content": message.get("content")},
        }
    }


def _is_tool_response_turn(turn: Mapping[str, Any]) -> bool:
    return turn.get("role") == "user" and any("functionResponse" in p for p in turn.get("parts", []))


def _append(state: ConversationState, turn: dict[str, Any]) -> ConversationState:
    return replace(state, turns=state.turns + (turn,))


def translate_message(
    state: ConversationState,
    message: Mapping[str, Any],
    *,
    merge_tool_results: bool = False,
) -> ConversationState:
    """Fold one client message into the conversation state."""
    if not isinstance(message, Mapping):
        logger.warning(f"Skipping non-object message: {type(message).__name__}")
        return state

    role = message.get("role")

    if role == "user":
        return _append(state, user_turn(message))

    if role == "assistant":
        new_state = _append(state, model_turn(message))
        recorded = {
            tc["id"]: (tc.get("function") or {}).get("name", "")
            for tc in message.get("tool_calls") or []
            if isinstance(tc, Mapping) and tc.get("id")
        }
        if recorded:
            new_state = replace(new_state, call_names={**state.call_names, **recorded})
        return new_state

    if role == "tool":
        part = function_response_part(message, state.call_names)
        if merge_tool_results and state.turns and _is_tool_response_turn(state.turns[-1]):
            last = state.turns[-1]
            merged = {"role": "user", "parts": [*last["parts"], part]}
            return replace(state, turns=state.turns[:-1] + (merged,))
        return _append(state, {"role": "user", "parts": [part]})

    if role != "system":
        logger.debug(f"Ignoring message with unsupported role: {role!r}")
    return state


def translate_messages(
    messages: Iterable[Mapping[str, Any]],
    *,
    merge_tool_results: bool = False,
) -> list[dict[str, Any]]:
    """Translate a full OpenAI message list into upstream ``contents``.

    Args:
        messages: OpenAI chat messages, in conversation order.
        merge_tool_results: Append consecutive tool results to the previous
            tool-response turn instead of opening a new turn.

    Returns:
        Upstream turns in the same order as the input messages.
    """
    step = partial(translate_message, merge_tool_results=merge_tool_results)
    state = reduce(step, messages, ConversationState())
    return list(state.turns)
