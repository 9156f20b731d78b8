from fastapi import APIRouter, Depends, Request

from chat_gateway.core.rate_limit import enforce_rate_limit
from chat_gateway.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ChatWithHistoryRequest,
    RecommendationsRequest,
    RecommendationsResponse,
)
from chat_gateway.services.chat_service import ChatService

router = APIRouter(tags=["Chat"], dependencies=[Depends(enforce_rate_limit)])


def get_chat_service(request: Request) -> ChatService:
    """Return the chat service built by the app factory."""
    return request.app.state.chat_service


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Answer a single customer message.

    Returns:
        ChatResponse: Assistant reply and UTC timestamp.

    Raises:
        ValidationAppError: 400 when the message is missing or too long.
        LLMAppError: Provider failures, mapped to 401/402/500/504.
    """
    return await service.reply(payload.message)


@router.post("/chat-with-history", response_model=ChatResponse)
async def chat_with_history(
    payload: ChatWithHistoryRequest,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Answer the latest turn of a conversation, given the prior messages."""
    return await service.reply_with_history(payload.messages)


@router.post("/recommendations", response_model=RecommendationsResponse)
async def recommendations(
    payload: RecommendationsRequest,
    service: ChatService = Depends(get_chat_service),
) -> RecommendationsResponse:
    """Recommend three products matching the caller's preferences."""
    return await service.recommend(payload.preferences)
