"""OpenAI-compatible chat completions endpoint."""

import json
import logging
from typing import Any, Mapping

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core import CredentialUnavailableError, classify_error
from ...core.registry import get_context
from ...relay import (
    ChatCompletionStreamRelay,
    ResponseMeta,
    build_chat_completion,
    prime_events,
    single_event,
)
from ...translation import build_request_envelope, is_image_model
from ...upstream.base import UpstreamEvent

logger = logging.getLogger("agproxy")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

# Request fields that are not sampling parameters.
_NON_PARAM_FIELDS = {"messages", "model", "stream", "tools"}


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


async def _stream_response(request: Request, context, envelope, credential, model_name: str) -> Response:
    relay = ChatCompletionStreamRelay(ResponseMeta.create(), model_name)

    if is_image_model(model_name):
        # Image models do not stream; their single reply becomes one chunk.
        reply = await context.invoker.generate(envelope, credential)
        events = single_event(UpstreamEvent.text(reply.content))
    else:
        events = await prime_events(context.invoker.stream(envelope, credential))

    return StreamingResponse(
        relay.relay(events, disconnect_checker=request.is_disconnected),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Translates the request into an upstream envelope and answers with
    either a ``chat.completion`` object or an SSE stream of chunks. Any
    failure before the first streamed byte is returned as a JSON error with
    the classified status code.
    """
    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        logger.error(f"Invalid JSON payload: {exc}")
        return _bad_request("Invalid JSON payload")

    if not isinstance(payload, Mapping):
        logger.error("Payload must be a JSON object")
        return _bad_request("Invalid JSON payload")

    messages = payload.get("messages")
    if not isinstance(messages, list):
        logger.error("Request missing messages array")
        return _bad_request("messages is required")

    model_name = payload.get("model")
    if not isinstance(model_name, str) or not model_name:
        logger.error("Request missing model name")
        return _bad_request("model is required")

    is_stream = bool(payload.get("stream"))
    params: dict[str, Any] = {k: v for k, v in payload.items() if k not in _NON_PARAM_FIELDS}
    logger.info(f"Processing request for model {model_name}, stream={is_stream}")

    context = get_context()
    try:
        credential = await context.credential_provider.get_credential()
        if credential is None:
            raise CredentialUnavailableError()

        envelope = build_request_envelope(
            messages,
            model_name,
            params,
            payload.get("tools"),
            credential,
            context.settings.defaults,
        )

        if is_stream:
            return await _stream_response(request, context, envelope, credential, model_name)

        reply = await context.invoker.generate(envelope, credential)
        return JSONResponse(build_chat_completion(ResponseMeta.create(), model_name, reply))
    except Exception as exc:
        logger.error(f"{request.method} {request.url.path} failed for model {model_name}: {exc}")
        error = classify_error(exc)
        return JSONResponse(error.body, status_code=error.status)
