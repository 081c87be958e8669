"""Models listing endpoint - OpenAI compatible."""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from ...core import CredentialUnavailableError
from ...core.registry import get_context

logger = logging.getLogger("agproxy")


async def list_models(request: Request) -> Response:
    """List the models the upstream offers to the current credential.

    GET /v1/models
    """
    logger.info("Received models list request")

    context = get_context()
    try:
        credential = await context.credential_provider.get_credential()
        if credential is None:
            raise CredentialUnavailableError()
        models = await context.invoker.list_models(credential)
    except Exception as exc:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=500)

    logger.info(f"Returning {len(models.get('data', []))} models")
    return JSONResponse(models)
