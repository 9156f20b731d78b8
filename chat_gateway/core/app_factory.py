from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers,
rate limiter lifecycle) so tests can build isolated instances.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_gateway.adapters.llm.factory import create_llm_client
from chat_gateway.adapters.rate_limit import (
    AbstractAdmissionController,
    FixedWindowAdmissionController,
    QuotaPolicy,
    RateLimitSweeper,
)
from chat_gateway.api.routes import chat_router, health_router
from chat_gateway.core.config import settings
from chat_gateway.core.exception_handlers import setup_exception_handlers
from chat_gateway.core.logging import configure_logging
from chat_gateway.core.middleware import request_id_middleware
from chat_gateway.core.openapi import apply_openapi_customizations
from chat_gateway.services.chat_service import ChatService

logger = logging.getLogger(__name__)

_EXPOSED_HEADERS = [
    "Retry-After",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "X-Request-Duration-ms",
]


def build_admission_controller() -> FixedWindowAdmissionController:
    """Build the admission controller from settings.

    Raises:
        PolicyMisconfigurationError: If the configured quota is invalid.
    """
    policy = QuotaPolicy(
        window_ms=settings.app.rate_limit_window_ms,
        max_requests=settings.app.rate_limit_requests,
    )
    return FixedWindowAdmissionController(policy)


def build_chat_service() -> ChatService:
    """Build the chat service and its completion provider from settings."""
    return ChatService(
        create_llm_client(),
        system_prompt=settings.app.system_prompt,
        temperature=settings.llm.temperature,
        max_tokens=settings.llm.max_tokens,
        recommendation_max_tokens=settings.llm.recommendation_max_tokens,
        max_message_chars=settings.app.max_message_chars,
        max_history_messages=settings.app.max_history_messages,
    )


def create_app(
    *,
    admission_controller: AbstractAdmissionController | None = None,
    chat_service: ChatService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        admission_controller: Optional pre-built controller (tests inject one
            with a fake clock); built from settings when omitted.
        chat_service: Optional pre-built chat service; built from settings
            when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        PolicyMisconfigurationError: If the rate limit settings are invalid.
        ValidationAppError: If the completion provider is misconfigured.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    controller = admission_controller if admission_controller is not None else build_admission_controller()
    service = chat_service if chat_service is not None else build_chat_service()
    sweeper = RateLimitSweeper(
        controller,
        interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "app.startup",
            extra={
                "env": settings.app_env,
                "model": settings.llm.model,
                "rate_limit_enabled": settings.app.rate_limit_enabled,
            },
        )
        await sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Chat Gateway",
        description=(
            "Rate-limited HTTP gateway that forwards chat requests to an LLM "
            "completion service and returns the generated text."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.admission_controller = controller
    app.state.chat_service = service
    app.state.rate_limit_sweeper = sweeper

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", settings.log.request_id_header],
        expose_headers=[*_EXPOSED_HEADERS, settings.log.request_id_header],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(chat_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
