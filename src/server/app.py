"""FastAPI application exposing the Forgejo -> Buildkite bridge."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse

from src.audit.logger import AuditLogger
from src.buildkite.client import BuildkiteClient
from src.config import VERSION, BridgeConfig, load_config
from src.server.status_page import render_status_page
from src.webhook.models import WebhookResponse
from src.webhook.relay import BuildTriggerPipeline


# Every method is routed to the handler so non-POST gets the bridge's own 405.
WEBHOOK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    config = load_config()
    audit_logger = (
        AuditLogger.from_env(config.audit_log_path) if config.audit_log_path else None
    )
    return create_app(config, audit_logger=audit_logger)


def create_app(
    config: BridgeConfig,
    client: BuildkiteClient | None = None,
    audit_logger: AuditLogger | None = None,
) -> FastAPI:
    """Create the bridge app around an immutable config and a Buildkite client."""
    owns_client = client is None
    buildkite = client or BuildkiteClient(config)
    pipeline = BuildTriggerPipeline(config, buildkite, audit_logger=audit_logger)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        # An injected client belongs to the caller.
        if owns_client:
            await buildkite.aclose()

    app = FastAPI(
        title="forgekite",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    @app.get("/", response_class=HTMLResponse)
    async def status_page() -> HTMLResponse:
        return HTMLResponse(render_status_page(config))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy", "version": VERSION, "org": config.org_slug}

    @app.api_route("/webhook", methods=WEBHOOK_METHODS, include_in_schema=False)
    @app.api_route("/webhook/{pipeline_path:path}", methods=WEBHOOK_METHODS)
    async def webhook(request: Request) -> Response:
        result = await pipeline.handle(
            request.method,
            request.url.path,
            request.stream(),
            source_ip=request.client.host if request.client else None,
        )
        return _to_response(result)

    return app


def _to_response(result: WebhookResponse) -> Response:
    if result.data is not None:
        return JSONResponse(result.data, status_code=result.status_code)
    return PlainTextResponse(result.text, status_code=result.status_code)
