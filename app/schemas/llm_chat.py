from typing import List, Literal, Optional
from pydantic import BaseModel

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

class ChatRequest(BaseModel):
    message: str

class ChatResponse(BaseModel):
    reply: str

class EmergencyGuidanceRequest(BaseModel):
    emergency_type: str
    location: str = ""

class FirstAidRequest(BaseModel):
    injury: str

class NewsItem(BaseModel):
    id: str
    title: str
    summary: str
    category: Literal["safety", "tourism", "weather", "transport", "emergency"] = "safety"
    timestamp: str
    source: str
    urgency: Literal["low", "medium", "high"] = "low"
    location: str
    confidence: int = 80
    tags: List[str] = []

class NewsResponse(BaseModel):
    success: bool
    data: List[NewsItem]
    error: Optional[str] = None
    last_updated: str
