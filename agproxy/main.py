"""Main FastAPI application for agproxy."""

import logging
import socket
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.routes import chat_completions, list_models
from .auth import ApiKeyValidator
from .config_loader import load_config
from .core.exceptions import AuthenticationError
from .core.registry import ProxyContext, set_context
from .settings import ProxySettings, build_settings
from .upstream import CloudCodeInvoker, StaticCredentialProvider
from .upstream.base import CredentialProvider, UpstreamInvoker

logger = logging.getLogger("agproxy")

# Browser and client probes that would only add noise to the request log
IGNORED_LOG_PATHS = ("/favicon.ico", "/.well-known")


def _log_bind_address(settings: ProxySettings) -> None:
    host, port = settings.server.host, settings.server.port
    logger.info("Configured bind address %s:%s", host, port)
    if host == "0.0.0.0":
        hostname = socket.gethostname()
        logger.info("Reachable on local network at http://%s:%s", hostname, port)


def create_app(
    settings: Optional[ProxySettings] = None,
    credential_provider: Optional[CredentialProvider] = None,
    invoker: Optional[UpstreamInvoker] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        settings: Resolved settings. Loaded from ``AGPROXY_CONFIG`` (or the
            bundled default config) when omitted.
        credential_provider: Source of upstream tokens. Defaults to a
            ``StaticCredentialProvider`` over ``settings.credentials``.
        invoker: Upstream caller. Defaults to a ``CloudCodeInvoker``.

    Returns:
        The configured FastAPI application instance.
    """
    if settings is None:
        settings = build_settings(load_config())
    if credential_provider is None:
        credential_provider = StaticCredentialProvider(settings.credentials)
    if invoker is None:
        invoker = CloudCodeInvoker(settings.upstream)

    set_context(ProxyContext(settings, credential_provider, invoker))

    api_keys = ApiKeyValidator(settings.security.api_key)
    max_request_bytes = settings.security.max_request_bytes

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("agproxy server starting up...")
        _log_bind_address(settings)
        logger.info(f"Upstream: {settings.upstream.base_url}")
        logger.info(f"API key check: {'enabled' if api_keys.is_enabled() else 'disabled'}")
        logger.info("agproxy server ready to handle requests")
        try:
            yield
        finally:
            aclose = getattr(invoker, "aclose", None)
            if aclose is not None:
                await aclose()
            logger.info("agproxy server shut down")

    app = FastAPI(title="agproxy", lifespan=lifespan)
    logger.info("FastAPI application created")

    @app.middleware("http")
    async def check_api_key(request: Request, call_next):
        try:
            api_keys.validate_request(request)
        except AuthenticationError as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        return await call_next(request)

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_request_bytes:
            logger.warning(
                f"Rejected {request.method} {request.url.path}: body of {content_length} bytes"
            )
            return JSONResponse(
                {"error": f"Request body too large, max {settings.security.max_request_size}"},
                status_code=413,
            )
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        path = request.url.path
        if not path.startswith(IGNORED_LOG_PATHS):
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(f"{request.method} {path} {response.status_code} {elapsed_ms:.0f}ms")
        return response

    # Register routes
    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)

    return app


__all__ = ["create_app"]
