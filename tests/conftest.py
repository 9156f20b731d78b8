"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any module imports the settings object.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-3.5-turbo")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from chat_gateway.adapters.llm.base import AbstractLLMClient  # noqa: E402


class FakeClock:
    """Deterministic millisecond clock."""

    def __init__(self, start: int = 0) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(start=1_700_000_000_000)


@pytest.fixture
def fake_llm() -> AsyncMock:
    """LLM client double returning a canned reply."""
    llm = AsyncMock(spec=AbstractLLMClient)
    llm.generate_text.return_value = "Try Tom Ford Black Orchid."
    return llm
