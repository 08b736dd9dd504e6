"""FastAPI route definitions for the Vapi tool endpoint."""

from __future__ import annotations

import asyncio
import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError as SchemaError

from src.api.schemas import ToolInvocation
from src.errors import AuthError, InternalError
from src.tools.dispatcher import ToolDispatcher, ToolResult

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Refresh Painting glue server OK"

router = APIRouter()


def require_api_key(request: Request, x_api_key: str | None = Header(default=None)) -> None:
    """Reject the request unless ``X-Api-Key`` matches the shared secret.

    An unset secret rejects everything rather than opening the endpoint.
    """
    secret = request.app.state.settings.api_secret
    if not secret or not x_api_key or not hmac.compare_digest(
        x_api_key.encode(), secret.encode(),
    ):
        raise AuthError("Missing or invalid X-Api-Key")


def _get_dispatcher(request: Request) -> ToolDispatcher:
    """Retrieve the dispatcher built during the FastAPI lifespan."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=503,
            detail="The tool server is still starting up. Please try again in a moment.",
        )
    return dispatcher


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/", response_class=PlainTextResponse)
async def liveness():
    """Liveness check; no auth."""
    return LIVENESS_TEXT


@router.post("/vapi-tool", dependencies=[Depends(require_api_key)])
async def vapi_tool(http_request: Request):
    """Run one tool call from the voice agent.

    The gateways are blocking HTTP clients, so dispatch runs on the default
    thread-pool via ``asyncio.to_thread`` and the event loop stays free for
    other requests.
    """
    dispatcher = _get_dispatcher(http_request)
    request_id = getattr(http_request.state, "request_id", "-")

    try:
        invocation = ToolInvocation.model_validate_json(await http_request.body())
    except SchemaError:
        logger.warning("[%s] Malformed tool call body", request_id, exc_info=True)
        result = ToolResult.from_error(InternalError("malformed body"))
    else:
        result = await asyncio.to_thread(
            dispatcher.dispatch,
            invocation.tool,
            invocation.arguments,
            request_id=request_id,
        )

    return JSONResponse(status_code=result.status_code, content=result.payload)
