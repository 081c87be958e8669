"""agproxy - OpenAI-compatible proxy for the Cloud Code v1internal API.

Accepts OpenAI Chat Completions requests, translates them into the upstream
conversation format and relays the reply back as a ``chat.completion``
object or an SSE chunk stream.

Example:
    >>> from agproxy import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8045)
"""

from .config_loader import load_config
from .logging import logger, setup_logging
from .main import create_app
from .settings import ProxySettings, TranslationDefaults, build_settings

__all__ = [
    "build_settings",
    "create_app",
    "load_config",
    "logger",
    "ProxySettings",
    "setup_logging",
    "TranslationDefaults",
]
