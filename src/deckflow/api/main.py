"""Deckflow — FastAPI Application.

This module defines the FastAPI application factory, all REST API routes, and
the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The application is stateless between requests:

- **Configuration** is loaded once by :func:`create_app` from ``DECKFLOW_*``
  environment variables.  A missing API key aborts startup.
- **The completion client** is created in the lifespan and stored on
  ``app.state`` inside a :class:`~deckflow.core.model_invoker.ModelInvoker`.
  Tests pass their own client to :func:`create_app` instead.
- **Generation** is delegated to :func:`~deckflow.core.pipeline.run_pipeline`.
  Every failure is a :class:`~deckflow.core.errors.PipelineError`, turned into
  ``{"error": message}`` by a single exception handler.
- **Disconnects** are polled while the pipeline runs.  If the caller goes
  away, the pipeline task is cancelled, which aborts the in-flight
  completion request.

Endpoints
---------
========  ======================  ====================================
Method    Path                    Purpose
========  ======================  ====================================
POST      ``/preview-ppt``        Generate a slide outline
POST      ``/generate-mermaid``   Generate Mermaid diagram source
GET       ``/health``             Liveness probe
GET       ``/api-docs``           Interactive OpenAPI documentation
========  ======================  ====================================

Usage
-----
CLI (installed entry point)::

    deckflow

Direct invocation::

    python -m deckflow.api.main
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager, suppress
from datetime import datetime, timezone
from typing import Any, TypeVar

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncOpenAI

from deckflow import __version__
from deckflow.api.models import (
    DiagramRequest,
    DiagramResponse,
    ErrorResponse,
    HealthResponse,
    OutlineRequest,
    OutlineResponse,
    request_body_schema,
)
from deckflow.core.config import DeckflowConfig, get_config
from deckflow.core.errors import InvalidRequest, PipelineError
from deckflow.core.model_invoker import ModelInvoker, build_client
from deckflow.core.pipeline import diagram_use_case, outline_use_case, run_pipeline

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds between checks for a caller that has gone away mid-generation.
DISCONNECT_POLL_INTERVAL = 0.5

# Sent when the caller disconnected; nobody receives it.
CLIENT_CLOSED_REQUEST = 499

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Generation failed"},
}

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


async def _read_body(request: Request) -> Any:
    """Decode the JSON request body.

    Raises:
        InvalidRequest: If the body is empty or not valid JSON.
    """
    try:
        return await request.json()
    except ValueError as e:
        raise InvalidRequest("Request body must be valid JSON") from e


async def _run_while_connected(
    request: Request,
    work: Awaitable[T],
    poll_interval: float = DISCONNECT_POLL_INTERVAL,
) -> T | None:
    """Await *work*, cancelling it if the caller disconnects first.

    The request body must already have been read, otherwise the disconnect
    check would consume it.

    Returns:
        The result of *work*, or ``None`` if the caller went away and the
        work was cancelled.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info("Client left %s; cancelling generation.", request.url.path)
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
                return None
    finally:
        if not task.done():
            task.cancel()


async def _handle_pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
    """Render a :class:`PipelineError` as ``{"error": message}``.

    ``exc.raw_text`` is deliberately left out of the response; the stage
    that raised has already logged it.
    """
    if isinstance(exc, InvalidRequest):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@router.post(
    "/preview-ppt",
    response_model=OutlineResponse,
    responses=_ERROR_RESPONSES,
    openapi_extra=request_body_schema(OutlineRequest),
)
async def preview_ppt(request: Request) -> OutlineResponse | JSONResponse:
    """Generate a slide outline from free-text requirements.

    Body fields:

    - ``requirements`` (required) — at least 10 characters.
    - ``slideCount`` — one of 4, 6, 8 (default 6).
    - ``tone`` — persuasive, professional or casual (default persuasive).
    - ``audience`` — general public, executives or students (default
      general public).

    Returns:
        Exactly ``slideCount`` slides.
    """
    body = await _read_body(request)
    state = request.app.state
    deck = await _run_while_connected(
        request, run_pipeline(body, state.outline_use_case, state.invoker)
    )
    if deck is None:
        return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"error": "Client disconnected"})
    return OutlineResponse.from_deck(deck)


@router.post(
    "/generate-mermaid",
    response_model=DiagramResponse,
    responses=_ERROR_RESPONSES,
    openapi_extra=request_body_schema(DiagramRequest),
)
async def generate_mermaid(request: Request) -> DiagramResponse | JSONResponse:
    """Generate Mermaid diagram source from free-text requirements.

    Body fields:

    - ``requirements`` (required) — at least 10 characters.
    """
    body = await _read_body(request)
    state = request.app.state
    diagram = await _run_while_connected(
        request, run_pipeline(body, state.diagram_use_case, state.invoker)
    )
    if diagram is None:
        return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"error": "Client disconnected"})
    return DiagramResponse.from_diagram(diagram)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report process liveness and the current UTC time."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    config: DeckflowConfig | None = None,
    client: AsyncOpenAI | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Configuration to use.  Defaults to :func:`get_config`, which
            raises if ``DECKFLOW_API_KEY`` is unset.
        client: Completion client to inject.  When ``None`` one is built
            from *config* on startup and closed on shutdown.

    Returns:
        The configured application.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the invoker on startup and release the client on shutdown."""
        owned_client = client is None
        active_client = build_client(config) if owned_client else client

        app.state.invoker = ModelInvoker(
            active_client,
            timeout=config.request_timeout,
            extra_headers={"HTTP-Referer": config.app_url},
        )
        app.state.outline_use_case = outline_use_case(config.outline_model)
        app.state.diagram_use_case = diagram_use_case(config.diagram_model)
        logger.info(
            "Deckflow ready (outline model=%s, diagram model=%s, timeout=%ss).",
            config.outline_model,
            config.diagram_model,
            config.request_timeout,
        )

        yield

        if owned_client:
            await active_client.close()
            logger.info("Completion client closed on shutdown.")

    app = FastAPI(
        title="Deckflow",
        description="Generate slide outlines and Mermaid diagrams from user requirements.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api-docs",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PipelineError, _handle_pipeline_error)
    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :func:`get_config` (which loads
    ``DECKFLOW_SERVER_HOST``, ``DECKFLOW_SERVER_PORT`` and
    ``DECKFLOW_LOG_LEVEL``).  Defaults to ``0.0.0.0:5001``.

    This function is registered as the ``deckflow`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "deckflow.api.main:create_app",
        factory=True,
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
