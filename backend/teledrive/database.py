"""Async SQLAlchemy engine and session factory.

Usage in routes:
    from teledrive.database import get_db

    @router.get("/files")
    async def list_files(db: AsyncSession = Depends(get_db)):
        return await list_records(db, principal.id)
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from teledrive.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
