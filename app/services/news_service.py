import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from cachetools import TTLCache
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.schemas.llm_chat import NewsItem, NewsResponse
from app.services.llm_chat_service import build_gemini_client

logger = logging.getLogger(__name__)

CATEGORIES = ("safety", "tourism", "weather", "transport", "emergency")
URGENCIES = ("low", "medium", "high")

NEWS_PROMPT = """Generate 4 real-time tourism and safety news items for {location}, India.

Create current, realistic news that would be helpful for tourists visiting {location} today. Focus on:
- Tourism safety updates and alerts
- Weather-related travel information
- Transportation updates for tourists
- Emergency service information

Format your response as a JSON array of objects with the keys:
title, summary, category (safety, tourism, weather, transport or emergency),
urgency (low, medium or high), source, tags."""

SEARCH_PROMPT = """Generate 2-3 tourism/safety news items related to: "{query}" in {location}, India.
{category_hint}
Format as JSON array with: title, summary, category, urgency, source, tags."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _infer_category(text: str) -> str:
    lower = text.lower()
    if any(word in lower for word in ("safety", "security", "police")):
        return "safety"
    if any(word in lower for word in ("weather", "rain", "temperature")):
        return "weather"
    if any(word in lower for word in ("transport", "traffic", "metro")):
        return "transport"
    if any(word in lower for word in ("emergency", "alert", "urgent")):
        return "emergency"
    return "tourism"


def _infer_urgency(text: str) -> str:
    lower = text.lower()
    if any(word in lower for word in ("urgent", "immediate", "critical")):
        return "high"
    if any(word in lower for word in ("alert", "warning", "attention")):
        return "medium"
    return "low"


def _news_item(location: str, confidence: int, **fields: Any) -> Optional[NewsItem]:
    category = fields.get("category")
    urgency = fields.get("urgency")
    tags = fields.get("tags")
    try:
        return NewsItem(
            id=f"news-{uuid.uuid4().hex[:12]}",
            title=str(fields.get("title") or "News Update"),
            summary=str(fields.get("summary") or "No details available"),
            category=category if category in CATEGORIES else "tourism",
            timestamp=_now(),
            source=str(fields.get("source") or "Gemini AI Live"),
            urgency=urgency if urgency in URGENCIES else "low",
            location=location,
            confidence=confidence,
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else ["real-time"],
        )
    except PydanticValidationError as e:
        logger.warning(f"Dropping malformed news item: {e}")
        return None


def parse_news(content: str, location: str) -> List[NewsItem]:
    """
    Turn model output into news items.

    A JSON array anywhere in the text is used when present; otherwise each
    substantial line of prose becomes an item with inferred category and
    urgency.
    """
    match = re.search(r"\[[\s\S]*\]", content or "")
    if match:
        try:
            raw = json.loads(match.group(0))
        except json.JSONDecodeError:
            raw = None
        if isinstance(raw, list):
            items = [_news_item(location, 95, **entry) for entry in raw if isinstance(entry, dict)]
            return [item for item in items if item is not None]

    lines = [line.strip() for line in (content or "").splitlines() if len(line.strip()) > 10]
    items = []
    for line in lines[:4]:
        item = _news_item(
            location, 88,
            title=line[:80] + ("..." if len(line) > 80 else ""),
            summary=line,
            category=_infer_category(line),
            urgency=_infer_urgency(line),
            source="Gemini AI Real-time",
            tags=["real-time", "gemini-ai"],
        )
        if item is not None:
            items.append(item)
    return items


def fallback_news(location: str) -> List[NewsItem]:
    hour = datetime.now().hour
    time_of_day = "Morning" if hour < 12 else "Afternoon" if hour < 17 else "Evening"
    samples = [
        dict(
            title=f"{time_of_day} Tourism Safety Update - {location}",
            summary="Current safety protocols active across major tourist attractions. "
                    "Enhanced security measures in place with digital monitoring systems operational.",
            category="safety", urgency="low", source="Smart Tourism (Fallback Mode)",
            tags=["safety", "smart-fallback"],
        ),
        dict(
            title="Traffic Analysis Complete",
            summary="Traffic monitoring indicates optimal routes available for tourist areas.",
            category="transport", urgency="medium", source="Transport Intelligence Network",
            tags=["transport", "traffic"],
        ),
        dict(
            title="Weather Conditions Optimal for Tourism",
            summary=f"Current weather conditions in {location} are favorable for outdoor activities.",
            category="weather", urgency="low", source="Weather Intelligence System",
            tags=["weather", "tourism"],
        ),
        dict(
            title="Emergency Services on Standby",
            summary="Police (100), Fire (101) and Ambulance (102) services are operational across the city.",
            category="emergency", urgency="low", source="Emergency Response Network",
            tags=["emergency-ready", "monitoring"],
        ),
    ]
    return [_news_item(location, 85, **sample) for sample in samples]


class NewsService:
    """Location news generated by the model, cached per location."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None, ttl: Optional[int] = None):
        self.client = client or build_gemini_client()
        self.model = model or settings.gemini_model
        self.cache: TTLCache = TTLCache(maxsize=64, ttl=ttl if ttl is not None else settings.news_cache_ttl)

    async def _generate(self, prompt: str, location: str) -> List[NewsItem]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
        )
        items = parse_news(response.choices[0].message.content or "", location)
        if not items:
            raise ValueError("Model returned no usable news items")
        return items

    async def fetch_news(self, location: Optional[str] = None, refresh: bool = False) -> NewsResponse:
        """
        News for `location`, from cache unless `refresh` is set.

        Never fails: if generation fails the canned items are returned (and
        cached) instead.
        """
        location = location or settings.news_location
        if not refresh and location in self.cache:
            return self.cache[location]

        try:
            items = await self._generate(NEWS_PROMPT.format(location=location), location)
            logger.info(f"Generated {len(items)} news items for {location}")
        except (OpenAIError, ValueError, IndexError, AttributeError) as e:
            logger.warning(f"News generation failed for {location}, using fallback: {e}")
            items = fallback_news(location)

        result = NewsResponse(success=True, data=items, last_updated=_now())
        self.cache[location] = result
        return result

    async def fetch_news_near(self, latitude: float, longitude: float) -> NewsResponse:
        return await self.fetch_news(f"{latitude:.4f},{longitude:.4f}", refresh=True)

    async def search_news(self, query: str, category: Optional[str] = None, location: Optional[str] = None) -> NewsResponse:
        """
        News matching `query`. Falls back to filtering the cached location
        feed by title, summary or category when generation fails.
        """
        location = location or settings.news_location
        hint = f"Focus on category: {category}" if category else ""
        try:
            items = await self._generate(
                SEARCH_PROMPT.format(query=query, location=location, category_hint=hint), location
            )
            return NewsResponse(success=True, data=items, last_updated=_now())
        except (OpenAIError, ValueError, IndexError, AttributeError) as e:
            logger.warning(f"News search failed, filtering local feed: {e}")

        feed = await self.fetch_news(location)
        needle = query.lower()
        matches = [
            item for item in feed.data
            if needle in item.title.lower() or needle in item.summary.lower() or (category and item.category == category)
        ]
        return NewsResponse(success=True, data=matches, last_updated=feed.last_updated)
