import sys
from datetime import datetime, timezone
from pathlib import Path

# Ensure the project's src directory is on sys.path for tests
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from secretlink.domain.clock import ManualClock  # noqa: E402
from secretlink.infrastructure.db.models import Base  # noqa: E402
from secretlink.infrastructure.stores.memory import InMemoryTokenStore  # noqa: E402
from secretlink.infrastructure.stores.sql import SqlAlchemyTokenStore  # noqa: E402
from secretlink.services.token_service import TokenService  # noqa: E402

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """A clock frozen at T0; tests move it with ``clock.advance(...)``."""
    return ManualClock(T0)


@pytest.fixture
def store():
    return InMemoryTokenStore()


@pytest.fixture
def service(store, clock):
    """TokenService over an in-memory store with the production default TTLs."""
    return TokenService(store, clock=clock)


@pytest.fixture
async def sql_store(tmp_path):
    """SqlAlchemyTokenStore backed by a file sqlite database.

    A file is used rather than ``:memory:`` so concurrent sessions get their own
    connections, as they would against a server database.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'tokens.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    AsyncSessionLocal = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    try:
        yield SqlAlchemyTokenStore(AsyncSessionLocal)
    finally:
        await engine.dispose()


@pytest.fixture
def test_app(store, clock):
    """Create an app wired to the shared in-memory store and manual clock.

    Yields (client, store, clock) where client.app is the FastAPI app.
    """
    from tests.fixtures.app_factory import create_test_app

    client = create_test_app(store=store, clock=clock)
    yield client, store, clock
