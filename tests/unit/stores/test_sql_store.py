from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from secretlink.domain.token import Token, TokenKind
from secretlink.exceptions import StorageError
from secretlink.infrastructure.db.models import TokenModel

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_token(token_id="abc"):
    return Token(
        id=token_id,
        subject="alice@example.com",
        kind=TokenKind.CODE,
        created_at=T0,
        expires_at=T0 + timedelta(minutes=10),
    )


@pytest.mark.asyncio
async def test_rows_store_naive_utc_and_load_aware(sql_store):
    await sql_store.put(make_token())
    async with sql_store.session_factory() as session:
        row = (await session.execute(select(TokenModel))).scalar_one()
    assert row.kind == "code"
    assert row.expires_at == datetime(2024, 1, 1, 12, 10, 0)
    loaded = await sql_store.get("abc")
    assert loaded.expires_at.tzinfo is not None
    assert loaded == make_token()


@pytest.mark.asyncio
async def test_store_is_usable_after_rejected_duplicate(sql_store):
    await sql_store.put(make_token())
    assert await sql_store.put(make_token()) is False
    assert await sql_store.put(make_token("def")) is True
    assert len(await sql_store.list_tokens()) == 2


@pytest.mark.asyncio
async def test_missing_table_is_a_storage_error():
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
    from sqlalchemy.orm import sessionmaker

    from secretlink.infrastructure.stores.sql import SqlAlchemyTokenStore

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    AsyncSessionLocal = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    store = SqlAlchemyTokenStore(AsyncSessionLocal)
    try:
        with pytest.raises(StorageError):
            await store.get("abc")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_code_redemptions_have_single_winner(sql_store, clock):
    import asyncio
    from collections import Counter

    from secretlink.domain.token import RedemptionOutcome
    from secretlink.services.redemption_guard import RedemptionGuard
    from secretlink.services.token_issuer import TokenIssuer
    from secretlink.services.token_validator import TokenValidator

    code = await TokenIssuer(sql_store, clock).issue("alice@example.com", kind=TokenKind.CODE)
    guard = RedemptionGuard(sql_store, TokenValidator(sql_store, clock), clock)

    results = await asyncio.gather(*(guard.redeem(code.id) for _ in range(50)))
    outcomes = Counter(r.outcome for r in results)
    assert outcomes[RedemptionOutcome.OK] == 1
    assert outcomes[RedemptionOutcome.ALREADY_CONSUMED] == 49
    assert (await sql_store.get(code.id)).consumed_at == clock.now()
