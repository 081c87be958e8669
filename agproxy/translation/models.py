"""Client-facing model names -> upstream model names and reasoning flags."""

from __future__ import annotations

# The opus pair is asymmetric: the upstream only serves opus
# through its thinking variant, while sonnet is served without the suffix.
MODEL_ALIASES: dict[str, str] = {
    "claude-sonnet-4-5-thinking": "claude-sonnet-4-5",
    "claude-opus-4-5": "claude-opus-4-5-thinking",
    "gemini-2.5-flash-thinking": "gemini-2.5-flash",
}

THINKING_SUFFIX = "-thinking"
THINKING_MODELS = frozenset({"gemini-2.5-pro", "rev19-uic3-1p", "gpt-oss-120b-medium"})
THINKING_MODEL_PREFIXES = ("gemini-3-pro-",)

IMAGE_MODEL_MARKER = "-image"


def resolve_model_name(model_name: str) -> str:
    """Return the upstream name for ``model_name`` (identity when not aliased)."""
    return MODEL_ALIASES.get(model_name, model_name)


def is_thinking_enabled(model_name: str) -> bool:
    """Whether the reasoning channel is requested for a client-facing model."""
    return (
        model_name.endswith(THINKING_SUFFIX)
        or model_name in THINKING_MODELS
        or model_name.startswith(THINKING_MODEL_PREFIXES)
    )


def is_image_model(model_name: str) -> bool:
    return IMAGE_MODEL_MARKER in model_name
