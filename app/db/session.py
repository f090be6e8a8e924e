from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    # SQLite (local runs, tests) has no server side to drop idle connections.
    if url.startswith("sqlite"):
        return {}
    # pool_pre_ping: check the connection is alive before use.
    # pool_recycle: discard pooled connections after this many seconds.
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; services own commit/rollback."""
    async with AsyncSessionLocal() as session:
        yield session
