"""Typed settings resolved from the loaded YAML configuration."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .core.exceptions import ConfigurationError

logger = logging.getLogger("agproxy")

DEFAULT_STOP_SEQUENCES: tuple[str, ...] = (
    "<|user|>",
    "<|bot|>",
    "<|context_request|>",
    "<|endoftext|>",
    "<|end_of_turn|>",
)
DEFAULT_THINKING_BUDGET = 1024
DEFAULT_UPSTREAM_BASE_URL = "https://daily-cloudcode-pa.sandbox.googleapis.com"
DEFAULT_USER_AGENT = "antigravity/1.11.3 windows/amd64"
DEFAULT_MAX_REQUEST_SIZE = "50mb"

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"b": 1, "kb": 1024, "mb": 1024**2, "gb": 1024**3}


@dataclass(frozen=True)
class TranslationDefaults:
    """Values the request translator falls back to when the client omits them."""

    temperature: float = 1.0
    top_p: float = 0.85
    top_k: int = 50
    max_tokens: int = 8096
    thinking_budget: int = DEFAULT_THINKING_BUDGET
    stop_sequences: tuple[str, ...] = DEFAULT_STOP_SEQUENCES
    system_instruction: str = ""
    merge_tool_results: bool = False


@dataclass(frozen=True)
class ServerSettings:
    host: str = "127.0.0.1"
    port: int = 8045


@dataclass(frozen=True)
class SecuritySettings:
    # Empty disables API key checks on /v1/*.
    api_key: Optional[str] = None
    max_request_size: str = DEFAULT_MAX_REQUEST_SIZE

    @property
    def max_request_bytes(self) -> int:
        return parse_size(self.max_request_size)


@dataclass(frozen=True)
class UpstreamSettings:
    base_url: str = DEFAULT_UPSTREAM_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 60.0


@dataclass(frozen=True)
class CredentialSettings:
    access_token: Optional[str] = None
    project_id: Optional[str] = None
    session_id: Optional[str] = None
    token_file: Optional[str] = None


@dataclass(frozen=True)
class ProxySettings:
    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    upstream: UpstreamSettings = field(default_factory=UpstreamSettings)
    credentials: CredentialSettings = field(default_factory=CredentialSettings)
    defaults: TranslationDefaults = field(default_factory=TranslationDefaults)


def parse_size(raw: str | int) -> int:
    """Parse a size like ``50mb`` or ``1024`` into bytes."""
    if isinstance(raw, int):
        return raw
    match = _SIZE_RE.match(str(raw))
    if not match:
        raise ConfigurationError(f"Invalid size value: {raw!r}")
    number, unit = match.groups()
    return int(float(number) * _SIZE_UNITS[(unit or "b").lower()])


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Config section '{name}' must be a mapping")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid integer for {name}: {value!r}, using {default}")
        return default


def _as_float(value: Any, default: float, name: str) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid number for {name}: {value!r}, using {default}")
        return default


def build_settings(config: Mapping[str, Any]) -> ProxySettings:
    """Resolve the raw config mapping into ``ProxySettings``.

    Environment variables take priority over the file for the bind address
    and API key: ``AGPROXY_HOST``, ``AGPROXY_PORT``, ``AGPROXY_API_KEY``.
    """
    server_cfg = _section(config, "server")
    host = os.getenv("AGPROXY_HOST") or str(server_cfg.get("host", ServerSettings.host))
    port = _as_int(os.getenv("AGPROXY_PORT") or server_cfg.get("port"), ServerSettings.port, "server.port")

    security_cfg = _section(config, "security")
    api_key = _optional_str(os.getenv("AGPROXY_API_KEY")) or _optional_str(security_cfg.get("api_key"))
    max_request_size = str(security_cfg.get("max_request_size") or DEFAULT_MAX_REQUEST_SIZE)
    parse_size(max_request_size)

    upstream_cfg = _section(config, "upstream")
    upstream = UpstreamSettings(
        base_url=str(upstream_cfg.get("base_url") or DEFAULT_UPSTREAM_BASE_URL).rstrip("/"),
        user_agent=str(upstream_cfg.get("user_agent") or DEFAULT_USER_AGENT),
        timeout=_as_float(upstream_cfg.get("timeout"), UpstreamSettings.timeout, "upstream.timeout"),
    )

    cred_cfg = _section(config, "credentials")
    credentials = CredentialSettings(
        access_token=_optional_str(cred_cfg.get("access_token")),
        project_id=_optional_str(cred_cfg.get("project_id")),
        session_id=_optional_str(cred_cfg.get("session_id")),
        token_file=_optional_str(cred_cfg.get("token_file")),
    )

    defaults_cfg = _section(config, "defaults")
    stop_sequences = defaults_cfg.get("stop_sequences")
    defaults = TranslationDefaults(
        temperature=_as_float(defaults_cfg.get("temperature"), TranslationDefaults.temperature, "defaults.temperature"),
        top_p=_as_float(defaults_cfg.get("top_p"), TranslationDefaults.top_p, "defaults.top_p"),
        top_k=_as_int(defaults_cfg.get("top_k"), TranslationDefaults.top_k, "defaults.top_k"),
        max_tokens=_as_int(defaults_cfg.get("max_tokens"), TranslationDefaults.max_tokens, "defaults.max_tokens"),
        thinking_budget=_as_int(
            defaults_cfg.get("thinking_budget"), DEFAULT_THINKING_BUDGET, "defaults.thinking_budget"
        ),
        stop_sequences=tuple(str(s) for s in stop_sequences) if stop_sequences else DEFAULT_STOP_SEQUENCES,
        system_instruction=str(config.get("system_instruction") or ""),
        merge_tool_results=bool(defaults_cfg.get("merge_tool_results", False)),
    )

    return ProxySettings(
        server=ServerSettings(host=host, port=port),
        security=SecuritySettings(api_key=api_key, max_request_size=max_request_size),
        upstream=upstream,
        credentials=credentials,
        defaults=defaults,
    )
