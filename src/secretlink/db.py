from typing import Any, Optional, cast

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .infrastructure.db.models import Base
from .logging_config import get_logger

logger = get_logger(__name__)

# Database engine and session factory for the SQL token store
engine: Optional[Any] = None
AsyncDbSessionFactory: Any = None


def create_engine(settings: Settings) -> Any:
    """Create an async engine for ``settings.database_url`` and register it on
    the module so other modules (or tests) can rebind or inspect it.

    Pool sizing only applies to server databases; sqlite uses SQLAlchemy's
    default pool for the driver.
    """
    global engine
    database_url = settings.database_url

    kwargs: dict[str, Any] = {"echo": False, "future": True}
    connect_args: dict[str, Any] = {}
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.store_timeout_seconds,
            pool_pre_ping=True,
        )
    if "postgresql+asyncpg" in database_url:
        # statement timeout surfaces as a driver error -> StorageError
        connect_args["command_timeout"] = settings.store_timeout_seconds

    engine = create_async_engine(database_url, connect_args=connect_args, **kwargs)
    return engine


def create_sessionmaker(bind_engine: Any) -> Any:
    """Create and register an AsyncSession factory bound to ``bind_engine``."""
    global AsyncDbSessionFactory
    AsyncDbSessionFactory = cast(
        Any, sessionmaker(bind=bind_engine, expire_on_commit=False, class_=AsyncSession)
    )  # type: ignore[call-overload]
    return AsyncDbSessionFactory


async def create_all(bind_engine: AsyncEngine | None = None) -> None:
    """Create the token table on ``bind_engine`` (or the module-level engine)."""
    use_engine = bind_engine or engine
    if use_engine is None:
        raise RuntimeError("No engine available to create tables")
    async with use_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("token_tables_ready")
