"""Rate limiting dependency for FastAPI routes.

This module wires the admission controller into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Explicit lifecycle: the controller is built by the app factory and kept on
  ``app.state``, so every app instance (and every test) has its own counters.
- The dependency performs no quota logic; it only extracts the identity and
  translates the decision into headers or a 429.

Identity strategy:
- First X-Forwarded-For hop when the gateway is configured to trust a proxy.
- Otherwise the socket peer address.
- Otherwise the shared anonymous bucket ``"*"``.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import HTTPException, Request, Response, status

from chat_gateway.adapters.rate_limit.base import AbstractAdmissionController, AdmissionDecision
from chat_gateway.core.config import settings

logger = logging.getLogger(__name__)

ANONYMOUS_IDENTITY = "*"


def get_admission_controller(request: Request) -> AbstractAdmissionController:
    """Return the admission controller attached to the running app."""

    return request.app.state.admission_controller


def resolve_client_identity(request: Request) -> str:
    """Derive the rate limit identity for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Client address, or ``"*"`` when none can be determined. All
        callers without an address share that one bucket.
    """

    if settings.app.rate_limit_trust_forwarded_for:
        forwarded_for = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host

    return ANONYMOUS_IDENTITY


def _hash_identity(identity: str) -> str:
    """Hash the identity for logging without exposing client addresses."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


def build_rate_limit_headers(decision: AdmissionDecision) -> dict[str, str]:
    """Render X-RateLimit-* headers for a decision."""

    return {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset_at_epoch_seconds),
    }


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing per-client rate limits.

    When enabled, records one request against the caller's budget. Allowed
    requests get X-RateLimit-* headers on the response; rejected requests
    raise HTTP 429 with Retry-After. The decision is kept on
    ``request.state.rate_limit_decision`` so the headers survive a route
    that fails after admission.

    Args:
        request: FastAPI request.
        response: Response whose headers are merged into the route's reply.

    Raises:
        HTTPException: 429 Too Many Requests when the budget is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return

    controller = get_admission_controller(request)
    identity = resolve_client_identity(request)
    identity_hash = _hash_identity(identity)
    identity_type = "anonymous" if identity == ANONYMOUS_IDENTITY else "address"

    decision = controller.decide(identity)
    request.state.rate_limit_decision = decision
    if decision.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "identity_type": identity_type,
                "identity_hash": identity_hash,
                "limit": decision.limit,
                "remaining": decision.remaining,
            },
        )
        if settings.app.rate_limit_include_headers:
            response.headers.update(build_rate_limit_headers(decision))
        return

    retry_after = decision.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "identity_type": identity_type,
            "identity_hash": identity_hash,
            "limit": decision.limit,
            "remaining": decision.remaining,
            "retry_after_s": retry_after,
        },
    )

    headers = {"Retry-After": str(retry_after)}
    if settings.app.rate_limit_include_headers:
        headers.update(build_rate_limit_headers(decision))

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers,
    )
