"""Pydantic schemas for chat requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Single-turn chat request."""

    message: str | None = Field(
        default=None,
        description="Customer message to answer.",
    )


class ChatMessage(BaseModel):
    """One turn of a prior conversation."""

    role: Literal["user", "assistant"] = Field(
        ..., description="Who authored the message."
    )
    content: str = Field(..., description="Message text.")


class ChatWithHistoryRequest(BaseModel):
    """Multi-turn chat request carrying the conversation so far."""

    messages: list[ChatMessage] | None = Field(
        default=None,
        description="Conversation history, oldest first; the last entry is the new question.",
    )


class RecommendationsRequest(BaseModel):
    """Request for product recommendations."""

    preferences: dict[str, Any] | None = Field(
        default=None,
        description="Free-form preferences (e.g., scent family, occasion, budget).",
    )


class ChatResponse(BaseModel):
    """Reply produced by the completion provider."""

    response: str = Field(..., description="Assistant reply text.")
    timestamp: datetime = Field(..., description="UTC time the reply was produced.")


class RecommendationsResponse(BaseModel):
    """Recommendations produced by the completion provider."""

    recommendations: str = Field(..., description="Recommendation text.")
    timestamp: datetime = Field(..., description="UTC time the reply was produced.")
