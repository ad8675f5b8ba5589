from typing import Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from adapters.persistence.sql.base_repository import SqlAlchemyRepository
from app.core.config import settings

T = TypeVar("T")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Lazily build the process-wide engine from settings."""
    global _engine
    if _engine is None:
        url = settings.SQLALCHEMY_DATABASE_URI
        engine_args = {"echo": settings.SQL_ECHO, "pool_pre_ping": True}
        if "sqlite" not in url:
            engine_args.update(
                {
                    "pool_size": settings.DB_POOL_SIZE,
                    "max_overflow": settings.DB_MAX_OVERFLOW,
                    "pool_recycle": settings.DB_POOL_RECYCLE,
                }
            )
        _engine = create_async_engine(url, **engine_args)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps committed entities readable once detached
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_factory


def build_repository(model_cls: Type[T]) -> SqlAlchemyRepository:
    """Repository for ``model_cls`` bound to the default session factory."""
    return SqlAlchemyRepository(get_session_factory(), model_cls)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
