from datetime import timedelta
from itertools import chain, repeat

import pytest

from secretlink.domain.token import TokenKind
from secretlink.exceptions import InvalidTokenRequest, StorageError
from secretlink.services.token_issuer import TokenIssuer


@pytest.mark.asyncio
async def test_issue_link_uses_default_ttl(store, clock):
    issuer = TokenIssuer(store, clock, link_ttl=900)
    token = await issuer.issue("alice")
    assert token.kind is TokenKind.LINK
    assert token.created_at == clock.now()
    assert token.expires_at - token.created_at == timedelta(seconds=900)
    assert token.consumed_at is None
    assert await store.get(token.id) == token


@pytest.mark.asyncio
async def test_issue_code_uses_code_ttl_and_explicit_ttl_wins(store, clock):
    issuer = TokenIssuer(store, clock, code_ttl=600)
    code = await issuer.issue("alice", kind=TokenKind.CODE)
    assert code.expires_at - code.created_at == timedelta(seconds=600)
    custom = await issuer.issue("alice", ttl=timedelta(seconds=30), kind=TokenKind.CODE)
    assert custom.expires_at - custom.created_at == timedelta(seconds=30)


@pytest.mark.asyncio
async def test_generated_ids_are_url_safe_and_distinct(store, clock):
    issuer = TokenIssuer(store, clock)
    ids = {(await issuer.issue("alice")).id for _ in range(200)}
    assert len(ids) == 200
    for token_id in ids:
        # 16 random bytes -> 22 url-safe base64 characters
        assert len(token_id) >= 22
        assert all(c.isalnum() or c in "-_" for c in token_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("subject", ["", "   "])
async def test_issue_rejects_empty_subject(store, clock, subject):
    issuer = TokenIssuer(store, clock)
    with pytest.raises(InvalidTokenRequest):
        await issuer.issue(subject)
    assert store.store == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -1, timedelta(0), timedelta(seconds=-5)])
async def test_issue_rejects_non_positive_ttl(store, clock, ttl):
    issuer = TokenIssuer(store, clock)
    with pytest.raises(InvalidTokenRequest):
        await issuer.issue("alice", ttl=ttl)
    assert store.store == {}


@pytest.mark.asyncio
async def test_issue_retries_on_id_collision(store, clock):
    ids = iter(["dup", "dup", "fresh"])
    issuer = TokenIssuer(store, clock, id_factory=lambda: next(ids))
    first = await issuer.issue("alice")
    second = await issuer.issue("bob")
    assert first.id == "dup"
    assert second.id == "fresh"
    # the existing token is untouched by the colliding attempt
    assert (await store.get("dup")).subject == "alice"


@pytest.mark.asyncio
async def test_issue_gives_up_after_max_attempts(store, clock):
    ids = chain(["taken"], repeat("taken"))
    issuer = TokenIssuer(store, clock, max_attempts=3, id_factory=lambda: next(ids))
    await issuer.issue("alice")
    with pytest.raises(StorageError):
        await issuer.issue("bob")
    assert len(store.store) == 1
