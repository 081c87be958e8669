"""Sampling parameters -> upstream generation config."""

from __future__ import annotations

from typing import Any, Mapping

from ..settings import TranslationDefaults

# Claude models reject topP when the reasoning channel is on.
TOP_P_CONFLICT_MARKER = "claude"


def _pick(params: Mapping[str, Any], key: str, default: Any) -> Any:
    value = params.get(key)
    return default if value is None else value


def build_generation_config(
    params: Mapping[str, Any],
    enable_thinking: bool,
    model_name: str,
    defaults: TranslationDefaults,
) -> dict[str, Any]:
    """Build ``generationConfig`` for one request.

    Args:
        params: Remaining client request fields (``top_p``, ``top_k``,
            ``temperature``, ``max_tokens`` are read).
        enable_thinking: Whether the reasoning channel is requested.
        model_name: Resolved upstream model name.
        defaults: Fallback values and the fixed stop sequences.
    """
    config: dict[str, Any] = {
        "topP": _pick(params, "top_p", defaults.top_p),
        "topK": _pick(params, "top_k", defaults.top_k),
        "temperature": _pick(params, "temperature", defaults.temperature),
        "candidateCount": 1,
        "maxOutputTokens": _pick(params, "max_tokens", defaults.max_tokens),
        "stopSequences": list(defaults.stop_sequences),
        "thinkingConfig": {
            "includeThoughts": enable_thinking,
            "thinkingBudget": defaults.thinking_budget if enable_thinking else 0,
        },
    }
    if enable_thinking and TOP_P_CONFLICT_MARKER in model_name:
        del config["topP"]
    return config


def build_image_generation_config() -> dict[str, Any]:
    return {"candidateCount": 1}
