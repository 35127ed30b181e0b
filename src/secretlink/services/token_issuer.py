import secrets
from datetime import timedelta
from typing import Callable, Optional, Union

from ..domain.token import Token, TokenKind
from ..exceptions import InvalidTokenRequest, StorageError
from ..logging_config import get_logger
from ..metrics import record_token_operation
from ..ports.clock import Clock
from ..ports.token_store import TokenStore
from ..utils.masking import fingerprint

logger = get_logger(__name__)

TTL = Union[timedelta, int, float]


class TokenIssuer:
    """Creates tokens and writes them to the store."""

    def __init__(
        self,
        store: TokenStore,
        clock: Clock,
        link_ttl: TTL = 900,
        code_ttl: TTL = 600,
        id_bytes: int = 16,
        max_attempts: int = 5,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.store = store
        self.clock = clock
        self.default_ttls = {
            TokenKind.LINK: _as_timedelta(link_ttl),
            TokenKind.CODE: _as_timedelta(code_ttl),
        }
        self.id_bytes = id_bytes
        self.max_attempts = max(1, max_attempts)
        self.id_factory = id_factory or self.generate_id

    def generate_id(self) -> str:
        return secrets.token_urlsafe(self.id_bytes)

    async def issue(
        self, subject: str, ttl: Optional[TTL] = None, kind: TokenKind = TokenKind.LINK
    ) -> Token:
        """Issue a token for ``subject`` valid for ``ttl`` (default per kind).

        Raises:
            InvalidTokenRequest: empty subject or non-positive ttl.
            StorageError: the store failed, or no free id was found.
        """
        kind = TokenKind(kind)
        if not subject or not subject.strip():
            raise InvalidTokenRequest("subject must not be empty")
        lifetime = self.default_ttls[kind] if ttl is None else _as_timedelta(ttl)
        if lifetime <= timedelta(0):
            raise InvalidTokenRequest("ttl must be positive")

        for attempt in range(1, self.max_attempts + 1):
            now = self.clock.now()
            token = Token(
                id=self.id_factory(),
                subject=subject,
                kind=kind,
                created_at=now,
                expires_at=now + lifetime,
            )
            if await self.store.put(token):
                record_token_operation("issue", kind.value, "ok")
                logger.info(
                    "token_issued",
                    token=fingerprint(token.id),
                    kind=kind.value,
                    ttl_seconds=int(lifetime.total_seconds()),
                )
                return token
            logger.warning("token_id_collision", attempt=attempt, kind=kind.value)

        record_token_operation("issue", kind.value, "collision")
        raise StorageError(f"could not allocate a unique token id after {self.max_attempts} attempts")


def _as_timedelta(value: TTL) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)
