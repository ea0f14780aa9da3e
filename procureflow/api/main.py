"""FastAPI application for the ProcureFlow agent API.

Provides the application factory with routers, middleware and exception
handlers configured. The lifespan owns every stateful dependency: it
builds the database engine, the ConversationStore, the domain
collaborators and the AgentOrchestrator, exposes them on ``app.state``,
and disposes of the engine on shutdown.
"""

import logging
import sys
import time as _time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
# Ensure our application loggers are captured
logging.getLogger("procureflow").setLevel(logging.INFO)
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from procureflow import __version__
from procureflow.api.routes import agent
from procureflow.api.schemas import ErrorResponse
from procureflow.config import Settings, get_settings
from procureflow.db.connection import (
    create_engine_for,
    create_session_factory,
    ensure_sqlite_parent_dir,
    init_db,
)
from procureflow.errors import (
    FormattedError,
    NotFoundError,
    ValidationError,
    describe_exception,
)
from procureflow.services.agent_orchestrator import build_orchestrator
from procureflow.services.completion_provider import (
    AnthropicCompletionProvider,
    CompletionProvider,
)
from procureflow.services.conversation_store import ConversationStore
from procureflow.services.domain_services import (
    CartService,
    CatalogService,
    CheckoutService,
)
from procureflow.services.memory_services import build_gateway
from procureflow.services.token_usage_store import TokenUsageStore

logger = logging.getLogger(__name__)


def _error_response(status_code: int, formatted: FormattedError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=formatted.code,
            message=formatted.message,
            remediation=formatted.remediation,
        ).model_dump(),
    )


def _summarize_request_errors(exc: RequestValidationError) -> str:
    """Describe schema errors by field and reason, never echoing input."""
    parts = []
    for error in exc.errors():
        location = ".".join(
            str(part)
            for part in error.get("loc", ())
            if part not in ("body", "query", "path", "header")
        )
        reason = str(error.get("msg", "invalid value"))
        parts.append(f"{location}: {reason}" if location else reason)
    return "; ".join(parts) or "the request could not be read"


def create_app(
    settings: Optional[Settings] = None,
    completion_provider: Optional[CompletionProvider] = None,
    catalog: Optional[CatalogService] = None,
    cart: Optional[CartService] = None,
    checkout: Optional[CheckoutService] = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Runtime configuration (read from the environment if None).
        completion_provider: Provider override; Anthropic by default.
        catalog: Catalog collaborator; in-memory reference by default.
        cart: Cart collaborator; in-memory reference by default.
        checkout: Checkout collaborator; in-memory reference by default.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Build the engine, store and orchestrator; dispose on shutdown."""
        ensure_sqlite_parent_dir(settings.database_url)
        engine = create_engine_for(settings.database_url, echo=settings.sql_echo)
        await init_db(engine)

        session_factory = create_session_factory(engine)
        store = ConversationStore(session_factory)
        usage_store = TokenUsageStore(session_factory, default_model=settings.agent_model)
        provider = completion_provider or AnthropicCompletionProvider(
            model=settings.agent_model,
            max_tokens=settings.agent_max_tokens,
            timeout_seconds=settings.completion_timeout_seconds,
        )
        gateway = build_gateway(catalog, cart, checkout)

        app.state.settings = settings
        app.state.store = store
        app.state.usage_store = usage_store
        app.state.orchestrator = build_orchestrator(
            store, provider, gateway, settings, usage_store=usage_store,
        )
        app.state.started_at = _time.time()
        logger.info("ProcureFlow agent API started (model=%s)", settings.agent_model)
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("ProcureFlow agent API stopped")

    app = FastAPI(
        title="ProcureFlow Agent API",
        description="Conversational procurement assistant",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS allowlist is env-driven. If unset, CORS is disabled (same-origin only).
    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.allowed_origins),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-User-Id"],
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Map schema failures (wrong types, oversized message) to 400."""
        detail = _summarize_request_errors(exc)
        logger.info("Rejected request to %s: %s", request.url.path, detail)
        return _error_response(400, describe_exception(ValidationError(detail)))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Map malformed input (including empty chat messages) to 400."""
        return _error_response(400, describe_exception(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(
        request: Request, exc: NotFoundError
    ) -> JSONResponse:
        """Map unknown conversations to 404."""
        return _error_response(404, describe_exception(exc))

    app.include_router(agent.router, prefix="/api/v1")

    @app.get("/health")
    def health_check(request: Request) -> dict:
        """Liveness check with version and uptime."""
        started_at = getattr(request.app.state, "started_at", None)
        uptime = int(_time.time() - started_at) if started_at else 0
        return {
            "status": "healthy",
            "version": __version__,
            "uptime_seconds": uptime,
        }

    return app


app = create_app()
