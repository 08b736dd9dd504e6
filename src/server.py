"""FastAPI server for the Refresh Painting tool backend.

Run with:
    uv run uvicorn src.server:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from src.api.routes import router
from src.config import Settings, load_settings
from src.errors import ToolError
from src.tools.dispatcher import ToolDispatcher, create_tool_dispatcher

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: build the gateways once ────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the dispatcher and its gateways unless one was injected."""
    if getattr(application.state, "dispatcher", None) is None:
        logger.info("Building tool dispatcher for calendar %s…",
                    application.state.settings.calendar_id)
        application.state.dispatcher = create_tool_dispatcher(application.state.settings)
    logger.info("Tool server ready.")
    yield


async def tool_error_handler(request: Request, exc: ToolError) -> JSONResponse:
    """Render a ``ToolError`` raised outside the dispatcher (auth) as ``{error}``."""
    request_id = getattr(request.state, "request_id", "-")
    logger.warning("[%s] %s: %s", request_id, type(exc).__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def add_request_id(request: Request, call_next) -> Response:
    """Attach a request ID to every request for log correlation.

    Vapi does not send one, so most IDs are generated here; the ID is echoed
    in ``X-Request-ID`` and prefixes every dispatcher log line.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(settings: Settings, dispatcher: ToolDispatcher | None = None) -> FastAPI:
    application = FastAPI(
        title="Refresh Painting Tool Server",
        description=(
            "Tool backend for the Refresh Painting voice agent: service-area "
            "check, virtual-estimate booking and SMS follow-ups."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.dispatcher = dispatcher
    application.middleware("http")(add_request_id)
    application.add_exception_handler(ToolError, tool_error_handler)
    application.include_router(router)
    return application


app = create_app(load_settings())


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    settings = app.state.settings
    logger.info("Starting tool server on %s:%d", settings.server_host, settings.server_port)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)
