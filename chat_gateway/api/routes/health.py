from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service
    health. Not subject to rate limiting.

    Returns:
        dict: ``status`` set to "OK" and the current UTC timestamp.
    """

    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}
