"""OpenAI LLM client adapter."""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from chat_gateway.adapters.llm.base import AbstractLLMClient
from chat_gateway.core.errors import LLMAppError

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Sorry, I'm having trouble right now. Please try again later."


def _translate_error(exc: Exception, model: str) -> LLMAppError:
    """Map an OpenAI SDK exception to an LLMAppError with an HTTP status.

    Args:
        exc: Exception raised by the SDK.
        model: Model name, included in the error details.

    Returns:
        LLMAppError carrying a stable code and ``details["http_status"]``.
    """
    code = getattr(exc, "code", None)

    if code == "insufficient_quota":
        return LLMAppError(
            code="insufficient_quota",
            message="API quota exceeded. Please check your provider billing.",
            details={"http_status": 402, "provider": "openai", "model": model},
        )
    if code == "invalid_api_key" or isinstance(exc, openai.AuthenticationError):
        return LLMAppError(
            code="invalid_api_key",
            message="Invalid API key. Please check your provider configuration.",
            details={"http_status": 401, "provider": "openai", "model": model},
        )
    if isinstance(exc, openai.APITimeoutError):
        return LLMAppError(
            code="llm_timeout",
            message="The completion service took too long to respond.",
            details={"http_status": 504, "provider": "openai", "model": model},
        )
    return LLMAppError(
        code="llm_error",
        message=GENERIC_FAILURE_MESSAGE,
        details={"http_status": 500, "provider": "openai", "model": model},
    )


class OpenAIClient(AbstractLLMClient):
    """Client for calling OpenAI chat completions.

    Uses the official OpenAI Python SDK with async support.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Model name (e.g., "gpt-3.5-turbo", "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI API.
            timeout_seconds: Timeout for requests in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_text(
        self,
        messages: list[dict[str, str]],
        **kwargs: Any,
    ) -> str:
        """Generate a reply using OpenAI chat completions.

        Args:
            messages: Chat messages, system prompt first.
            **kwargs: Provider options (temperature, max_tokens, top_p, etc.).

        Returns:
            str: Reply text.

        Raises:
            LLMAppError: If the API call fails or the reply is empty.
        """
        temperature = kwargs.pop("temperature", 0.7)

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
        }

        # Pass through additional parameters if provided
        allowed_params = {
            "max_tokens",
            "top_p",
            "frequency_penalty",
            "presence_penalty",
            "seed",
        }
        for param in allowed_params:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.OpenAIError as exc:
            error = _translate_error(exc, self.model)
            logger.error(
                "llm.request_failed",
                extra={
                    "error_code": error.code,
                    "error_type": type(exc).__name__,
                    "model": self.model,
                },
            )
            raise error from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise LLMAppError(
                code="llm_empty_response",
                message=GENERIC_FAILURE_MESSAGE,
                details={"http_status": 500, "provider": "openai", "model": self.model},
            )

        return content.strip()
