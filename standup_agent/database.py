from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from .config import Settings


def build_engine(config: Settings) -> AsyncEngine:
    """Create an async engine for the configured database url"""
    return create_async_engine(
        config.database_url,
        echo=config.database_echo,
        future=True
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False
    )
