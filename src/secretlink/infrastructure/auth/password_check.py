"""Credential checks used before a token is handed out."""

import asyncio
from typing import Dict, Optional

from ...logging_config import get_logger
from ...utils.masking import mask_email
from ...utils.password import hash_password, verify_password

logger = get_logger(__name__)


class PasswordCredentialCheck:
    """Per-subject password check.

    With ``register_on_first_use`` an unknown subject is enrolled with the
    presented secret and the check passes, the way the login screen created
    accounts on first sign-in.
    """

    def __init__(
        self, hashes: Optional[Dict[str, str]] = None, register_on_first_use: bool = False
    ):
        self.hashes: Dict[str, str] = dict(hashes or {})
        self.register_on_first_use = register_on_first_use
        self.lock = asyncio.Lock()

    def register(self, subject: str, secret: str) -> None:
        self.hashes[subject] = hash_password(secret)

    async def check(self, subject: str, secret: str) -> bool:
        if not subject or not secret:
            return False
        async with self.lock:
            hashed = self.hashes.get(subject)
            if hashed is None:
                if not self.register_on_first_use:
                    return False
                self.register(subject, secret)
                logger.info("credential_registered", subject=mask_email(subject))
                return True
        return verify_password(secret, hashed)


class MasterPasswordCheck:
    """Single shared password guarding the link generator. Subject is ignored."""

    def __init__(self, password_hash: str):
        self.password_hash = password_hash

    async def check(self, subject: str, secret: str) -> bool:
        if not self.password_hash:
            # generator disabled until a hash is configured
            return False
        return verify_password(secret, self.password_hash)
