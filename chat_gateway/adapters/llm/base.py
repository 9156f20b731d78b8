from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for completion providers that return plain text."""

	@abstractmethod
	async def generate_text(
		self,
		messages: list[dict[str, str]],
		**kwargs: Any,
	) -> str:
		"""Generate a reply for a chat-formatted conversation.

		Args:
			messages: Ordered ``{"role": ..., "content": ...}`` messages,
				system prompt first.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			str: Reply text with surrounding whitespace removed.

		Raises:
			LLMAppError: If the provider call fails or returns no content.
		"""
		...
