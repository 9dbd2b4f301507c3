import logging

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _masked(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def build_engine(url: str, **kwargs) -> AsyncEngine:
    logger.info(f"SQLAlchemy DB URL: {_masked(url)}")
    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    # Records are handed out as plain dicts after commit, so nothing should expire
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.sqlalchemy_database_url)

AsyncSessionLocal = build_session_factory(engine)
