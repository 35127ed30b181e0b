import pytest

from secretlink.infrastructure.auth.password_check import (
    MasterPasswordCheck,
    PasswordCredentialCheck,
)
from secretlink.utils.password import hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_rejects_empty_and_malformed_hashes():
    assert not verify_password("", hash_password("x"))
    assert not verify_password("x", "")
    assert not verify_password("x", "not-a-hash")


@pytest.mark.asyncio
async def test_known_subject_requires_matching_password():
    check = PasswordCredentialCheck()
    check.register("alice@example.com", "pw1")
    assert await check.check("alice@example.com", "pw1")
    assert not await check.check("alice@example.com", "pw2")
    assert not await check.check("bob@example.com", "pw1")


@pytest.mark.asyncio
async def test_first_use_registration_pins_the_password():
    check = PasswordCredentialCheck(register_on_first_use=True)
    assert await check.check("new@example.com", "first")
    assert await check.check("new@example.com", "first")
    assert not await check.check("new@example.com", "second")


@pytest.mark.asyncio
async def test_empty_credentials_never_pass_or_register():
    check = PasswordCredentialCheck(register_on_first_use=True)
    assert not await check.check("", "pw")
    assert not await check.check("a@example.com", "")
    assert check.hashes == {}


@pytest.mark.asyncio
async def test_master_password_ignores_subject():
    check = MasterPasswordCheck(hash_password("master"))
    assert await check.check("anyone", "master")
    assert await check.check("", "master")
    assert not await check.check("anyone", "guess")


@pytest.mark.asyncio
async def test_unconfigured_master_password_rejects_everything():
    check = MasterPasswordCheck("")
    assert not await check.check("anyone", "")
    assert not await check.check("anyone", "anything")
