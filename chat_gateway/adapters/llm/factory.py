"""Factory pattern for creating LLM client instances."""

from chat_gateway.adapters.llm.base import AbstractLLMClient
from chat_gateway.adapters.llm.openai_client import OpenAIClient
from chat_gateway.core.config import settings
from chat_gateway.core.errors import ValidationAppError


def create_llm_client() -> AbstractLLMClient:
    """Factory function to instantiate LLM clients based on provider.

    Reads configuration from chat_gateway.core.config.settings.
    Validates provider-specific requirements and routes to appropriate client.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ValidationAppError: If provider-specific requirements are not met.
    """
    provider = settings.llm.provider.lower()

    if provider == "openai":
        if not settings.llm.api_key:
            raise ValidationAppError(
                code="llm_missing_api_key",
                message="OpenAI provider requires LLM_API_KEY (or OPENAI_API_KEY) environment variable",
            )
        return OpenAIClient(
            api_key=settings.llm.api_key,
            model=settings.llm.model,
            base_url=settings.llm.base_url,
            timeout_seconds=settings.llm.timeout_seconds,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{provider}'. Supported providers: openai"
        ),
    )
