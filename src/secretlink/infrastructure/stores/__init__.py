"""Token store implementations and the factory that picks one from settings."""

from typing import Any

from ...config import Settings
from ...logging_config import get_logger
from .memory import InMemoryTokenStore
from .redis_store import RedisTokenStore
from .sql import SqlAlchemyTokenStore

logger = get_logger(__name__)


async def build_token_store(settings: Settings) -> Any:
    """Construct the store named by ``settings.token_store``.

    The SQL backend creates its engine and tables here, so this must run at
    application startup rather than import time.
    """
    backend = settings.token_store.lower()
    if backend == "memory":
        store: Any = InMemoryTokenStore()
    elif backend == "sql":
        from ... import db as db_mod

        engine = db_mod.create_engine(settings)
        session_factory = db_mod.create_sessionmaker(engine)
        await db_mod.create_all(engine)
        store = SqlAlchemyTokenStore(session_factory)
    elif backend == "redis":
        if not settings.redis_url:
            raise ValueError("token_store=redis requires redis_url")
        store = RedisTokenStore.from_url(
            settings.redis_url,
            key_prefix=settings.redis_key_prefix,
            expired_retention_seconds=settings.redis_expired_retention_seconds,
            timeout_seconds=settings.store_timeout_seconds,
        )
    else:
        raise ValueError(f"unknown token_store backend: {settings.token_store!r}")
    logger.info("token_store_initialized", backend=backend)
    return store


__all__ = [
    "InMemoryTokenStore",
    "RedisTokenStore",
    "SqlAlchemyTokenStore",
    "build_token_store",
]
