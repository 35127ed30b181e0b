from datetime import timedelta

import pytest

from secretlink.domain.token import TokenKind, ValidationOutcome
from secretlink.services.token_issuer import TokenIssuer
from secretlink.services.token_validator import TokenValidator


@pytest.fixture
def issuer(store, clock):
    return TokenIssuer(store, clock, link_ttl=60, code_ttl=60)


@pytest.fixture
def validator(store, clock):
    return TokenValidator(store, clock)


@pytest.mark.asyncio
async def test_unknown_and_empty_ids_are_not_found(validator):
    assert (await validator.validate("nope")).outcome is ValidationOutcome.NOT_FOUND
    assert (await validator.validate("")).outcome is ValidationOutcome.NOT_FOUND


@pytest.mark.asyncio
async def test_valid_until_deadline(issuer, validator, clock):
    token = await issuer.issue("alice")
    clock.advance(seconds=59)
    result = await validator.validate(token.id)
    assert result.ok
    assert result.token == token


@pytest.mark.asyncio
async def test_expired_at_deadline_and_evicted(issuer, validator, store, clock):
    token = await issuer.issue("alice")
    clock.advance(seconds=60)
    result = await validator.validate(token.id)
    assert result.outcome is ValidationOutcome.EXPIRED
    assert result.public_message == "invalid or expired"
    assert await store.get(token.id) is None
    assert (await validator.validate(token.id)).outcome is ValidationOutcome.NOT_FOUND


@pytest.mark.asyncio
async def test_validation_does_not_consume_codes(issuer, validator, store):
    code = await issuer.issue("alice", kind=TokenKind.CODE)
    for _ in range(3):
        assert (await validator.validate(code.id)).ok
    assert (await store.get(code.id)).consumed_at is None


@pytest.mark.asyncio
async def test_consumed_code_reports_already_consumed(issuer, validator, store, clock):
    code = await issuer.issue("alice", kind=TokenKind.CODE)
    await store.mark_consumed(code.id, clock.now())
    result = await validator.validate(code.id)
    assert result.outcome is ValidationOutcome.ALREADY_CONSUMED
    assert not result.ok


@pytest.mark.asyncio
async def test_explicit_now_overrides_clock(issuer, validator, clock):
    token = await issuer.issue("alice")
    later = clock.now() + timedelta(minutes=5)
    assert (await validator.validate(token.id, now=later)).outcome is ValidationOutcome.EXPIRED
