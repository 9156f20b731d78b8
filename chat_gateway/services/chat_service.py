"""Chat service turning validated requests into completion calls.

This service is the thin business layer between the HTTP routes and the
completion provider. It handles:
- Input validation (required fields, length limits)
- Message list construction with the configured system prompt
- History trimming to the configured window
- Response shaping with UTC timestamps
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from chat_gateway.adapters.llm.base import AbstractLLMClient
from chat_gateway.core.errors import LLMAppError, ValidationAppError
from chat_gateway.schemas.chat import ChatMessage, ChatResponse, RecommendationsResponse
from chat_gateway.services.prompts import RECOMMENDATIONS_FAILURE_MESSAGE, RECOMMENDATIONS_TEMPLATE

logger = logging.getLogger(__name__)

# Provider failures reported with the recommendations-specific message
_GENERIC_LLM_FAILURES = frozenset({"llm_error", "llm_empty_response"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChatService:
    """Service answering chat and recommendation requests via an LLM.

    Attributes:
        llm: Completion provider client.
        system_prompt: Prompt prepended to every conversation.
    """

    def __init__(
        self,
        llm: AbstractLLMClient,
        *,
        system_prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 300,
        recommendation_max_tokens: int = 400,
        max_message_chars: int = 4000,
        max_history_messages: int = 20,
    ) -> None:
        """Initialize chat service with dependencies.

        Args:
            llm: Configured LLM client instance.
            system_prompt: System prompt text.
            temperature: Sampling temperature passed to the provider.
            max_tokens: Token cap for chat replies.
            recommendation_max_tokens: Token cap for recommendations.
            max_message_chars: Maximum characters accepted per message.
            max_history_messages: Most recent history entries forwarded.
        """
        self.llm = llm
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.recommendation_max_tokens = recommendation_max_tokens
        self.max_message_chars = max_message_chars
        self.max_history_messages = max_history_messages

    def _check_length(self, text: str) -> None:
        if len(text) > self.max_message_chars:
            raise ValidationAppError(
                code="message_too_long",
                message=f"Message exceeds {self.max_message_chars} characters.",
                details={
                    "max_value": self.max_message_chars,
                    "actual_value": len(text),
                },
            )

    def _with_system_prompt(self, messages: list[dict[str, str]]) -> list[dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}, *messages]

    async def _complete(
        self,
        messages: list[dict[str, str]],
        *,
        max_tokens: int,
        kind: str,
    ) -> str:
        start = time.perf_counter()
        text = await self.llm.generate_text(
            self._with_system_prompt(messages),
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
        logger.info(
            "chat.completed",
            extra={
                "kind": kind,
                "message_count": len(messages),
                "reply_chars": len(text),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return text

    async def reply(self, message: str | None) -> ChatResponse:
        """Answer a single customer message.

        Raises:
            ValidationAppError: If the message is missing, blank or too long.
            LLMAppError: If the provider call fails.
        """
        if not message or not message.strip():
            raise ValidationAppError(code="message_required", message="Message is required")
        self._check_length(message)

        text = await self._complete(
            [{"role": "user", "content": message}],
            max_tokens=self.max_tokens,
            kind="chat",
        )
        return ChatResponse(response=text, timestamp=_utcnow())

    async def reply_with_history(self, messages: list[ChatMessage] | None) -> ChatResponse:
        """Answer the latest turn of a conversation.

        Only the last ``max_history_messages`` entries are forwarded.

        Raises:
            ValidationAppError: If the history is missing/empty or a message is too long.
            LLMAppError: If the provider call fails.
        """
        if not messages:
            raise ValidationAppError(
                code="messages_required",
                message="Messages array is required",
            )

        recent = messages[-self.max_history_messages:] if self.max_history_messages > 0 else messages
        for item in recent:
            self._check_length(item.content)

        text = await self._complete(
            [item.model_dump() for item in recent],
            max_tokens=self.max_tokens,
            kind="chat_with_history",
        )
        return ChatResponse(response=text, timestamp=_utcnow())

    async def recommend(self, preferences: dict[str, Any] | None) -> RecommendationsResponse:
        """Recommend three products matching the given preferences.

        Missing preferences are serialized as ``null`` and still sent.

        Raises:
            ValidationAppError: If the serialized preferences are too long.
            LLMAppError: If the provider call fails.
        """
        serialized = json.dumps(preferences, ensure_ascii=False, separators=(",", ":"))
        self._check_length(serialized)
        prompt = RECOMMENDATIONS_TEMPLATE.format(preferences=serialized)

        try:
            text = await self._complete(
                [{"role": "user", "content": prompt}],
                max_tokens=self.recommendation_max_tokens,
                kind="recommendations",
            )
        except LLMAppError as exc:
            if exc.code not in _GENERIC_LLM_FAILURES:
                raise
            raise LLMAppError(
                code=exc.code,
                message=RECOMMENDATIONS_FAILURE_MESSAGE,
                details=exc.details,
            ) from exc
        return RecommendationsResponse(recommendations=text, timestamp=_utcnow())
