from sqlalchemy.ext.asyncio import AsyncEngine

from .core.record_store import RecordStore
from .database import AsyncSessionLocal, Base

# Shared by every request so change-feed subscribers see writes from all of them
store = RecordStore(AsyncSessionLocal)

def get_store() -> RecordStore:
    return store

async def create_all(engine: AsyncEngine) -> None:
    """Create any missing tables. Local development only; deployments run the migrations."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
