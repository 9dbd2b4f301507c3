from fastapi import APIRouter

from app.config import settings

router = APIRouter(tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok", "environment": settings.environment}
