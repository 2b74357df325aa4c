"""
Async Database Manager for SQLAlchemy
- Explicit init/close lifecycle driven by the application lifespan
- Model registration and table creation on init
- Commit/rollback handling per request session
"""
import logging
from importlib import import_module
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
    AsyncEngine
)
from mindnamo.core.config import settings
from mindnamo.models.base import Base

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions for the process."""

    def __init__(self):
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    async def init(self, database_url: Optional[str] = None):
        """Create the engine and session factory, then make sure tables exist."""
        if self.engine is not None:
            return

        db_url = database_url or settings.DATABASE_URL
        engine_kwargs = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        if not db_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=15,
                max_overflow=5,
                pool_timeout=30,
                pool_recycle=300,
            )

        try:
            self.engine = create_async_engine(db_url, **engine_kwargs)
            async with self.engine.begin() as conn:
                await self._setup_database(conn)

            self.session_factory = async_sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
                autoflush=False
            )
        except Exception as e:
            logger.error(f"❌ Database initialization failed: {e}")
            await self.close()
            raise

    async def _setup_database(self, conn):
        """Register models and create missing tables"""
        await conn.execute(text("SELECT 1"))
        for model in settings.DB_MODELS:
            import_module(model)

        await conn.run_sync(Base.metadata.create_all)
        logger.info(f"📝 Models registered: {sorted(Base.metadata.tables.keys())}")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Context manager for safe session handling"""
        if not self.session_factory:
            raise RuntimeError("DatabaseSessionManager not initialized")
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self):
        """Cleanup connection pool"""
        if self.engine:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None

# Initialize session manager
session_manager = DatabaseSessionManager()

async def aget_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions
    Usage:
    @router.get("/")
    async def endpoint(db: AsyncSession = Depends(aget_db)):
        ...
    """
    async with session_manager.get_session() as session:
        yield session
