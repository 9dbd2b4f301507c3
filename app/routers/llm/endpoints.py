import logging
from functools import lru_cache
from typing import Optional
from cachetools import TTLCache
from fastapi import APIRouter, Depends, Query, Response
from app.common import get_current_user
from app.config import settings
from app.schemas.llm_chat import (
    ChatRequest,
    ChatResponse,
    EmergencyGuidanceRequest,
    FirstAidRequest,
    NewsResponse,
)
from app.services.llm_chat_service import EmergencyAssistant
from app.services.news_service import NewsService

# Configure logger for assistant endpoints
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant", tags=["Emergency Assistant"])

# One conversation per user, held in process memory until it goes idle
_assistants: TTLCache = TTLCache(maxsize=settings.assistant_cache_size, ttl=settings.assistant_idle_ttl)

def get_assistant(current_user: dict = Depends(get_current_user)) -> EmergencyAssistant:
    assistant = _assistants.get(current_user["uid"])
    if assistant is None:
        assistant = EmergencyAssistant()
    # Re-inserting restarts the idle timer
    _assistants[current_user["uid"]] = assistant
    return assistant

@lru_cache
def get_news_service() -> NewsService:
    return NewsService()

@router.post("/chat", response_model=ChatResponse)
async def chat_api(
    request: ChatRequest,
    assistant: EmergencyAssistant = Depends(get_assistant)
):
    """
    Send a message to the emergency assistant.

    Model failures never surface as errors; the reply then lists the
    emergency numbers instead.
    """
    return ChatResponse(reply=await assistant.send_message(request.message))

@router.post("/emergency", response_model=ChatResponse)
async def emergency_guidance_api(
    request: EmergencyGuidanceRequest,
    assistant: EmergencyAssistant = Depends(get_assistant)
):
    return ChatResponse(reply=await assistant.get_emergency_response(request.emergency_type, request.location))

@router.post("/first-aid", response_model=ChatResponse)
async def first_aid_api(
    request: FirstAidRequest,
    assistant: EmergencyAssistant = Depends(get_assistant)
):
    return ChatResponse(reply=await assistant.get_first_aid_guidance(request.injury))

@router.delete("/history", status_code=204)
async def clear_history_api(assistant: EmergencyAssistant = Depends(get_assistant)):
    assistant.clear_history()
    return Response(status_code=204)

@router.get("/status", response_model=dict)
async def assistant_status_api(assistant: EmergencyAssistant = Depends(get_assistant)):
    return {"connected": await assistant.test_connection()}

@router.get("/news", response_model=NewsResponse)
async def news_api(
    location: Optional[str] = None,
    refresh: bool = False,
    news: NewsService = Depends(get_news_service),
    current_user: dict = Depends(get_current_user)
):
    return await news.fetch_news(location, refresh)

@router.get("/news/nearby", response_model=NewsResponse)
async def news_nearby_api(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    news: NewsService = Depends(get_news_service),
    current_user: dict = Depends(get_current_user)
):
    return await news.fetch_news_near(lat, lng)

@router.get("/news/search", response_model=NewsResponse)
async def news_search_api(
    q: str = Query(..., min_length=1),
    category: Optional[str] = None,
    news: NewsService = Depends(get_news_service),
    current_user: dict = Depends(get_current_user)
):
    return await news.search_news(q, category)
