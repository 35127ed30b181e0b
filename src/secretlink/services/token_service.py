"""Service layer tying the token components to one store and clock."""

from datetime import timedelta
from typing import List, Optional

from ..config import Settings
from ..domain.clock import SystemClock
from ..domain.token import (
    RedemptionResult,
    RevocationOutcome,
    Token,
    TokenKind,
    ValidationResult,
)
from ..exceptions import DeliveryError
from ..logging_config import get_logger
from ..metrics import NOTIFY_FAILURES, record_token_operation
from ..ports.clock import Clock
from ..ports.notifier import Notifier
from ..ports.token_store import TokenStore
from ..utils.masking import fingerprint
from .expiry_sweeper import ExpirySweeper
from .redemption_guard import RedemptionGuard
from .token_issuer import TTL, TokenIssuer
from .token_validator import TokenValidator

logger = get_logger(__name__)


class TokenService:
    """Encapsulates the token lifecycle: issue, validate, redeem, revoke, sweep."""

    def __init__(
        self,
        store: TokenStore,
        clock: Optional[Clock] = None,
        issuer: Optional[TokenIssuer] = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.issuer = issuer or TokenIssuer(store, self.clock)
        self.validator = TokenValidator(store, self.clock)
        self.guard = RedemptionGuard(store, self.validator, self.clock)
        self.sweeper = ExpirySweeper(store, self.clock)

    @classmethod
    def from_settings(
        cls, store: TokenStore, settings: Settings, clock: Optional[Clock] = None
    ) -> "TokenService":
        clock = clock or SystemClock()
        issuer = TokenIssuer(
            store,
            clock,
            link_ttl=settings.link_ttl_seconds,
            code_ttl=settings.code_ttl_seconds,
            id_bytes=settings.token_id_bytes,
            max_attempts=settings.issue_max_attempts,
        )
        return cls(store, clock=clock, issuer=issuer)

    async def issue(
        self, subject: str, ttl: Optional[TTL] = None, kind: TokenKind = TokenKind.LINK
    ) -> Token:
        return await self.issuer.issue(subject, ttl=ttl, kind=kind)

    async def validate(self, token_id: str) -> ValidationResult:
        return await self.validator.validate(token_id)

    async def redeem(
        self, token_id: str, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> RedemptionResult:
        return await self.guard.redeem(token_id, subject=subject, kind=kind)

    async def revoke(self, token_id: str) -> RevocationOutcome:
        removed = await self.store.delete(token_id) if token_id else False
        outcome = RevocationOutcome.OK if removed else RevocationOutcome.NOT_FOUND
        record_token_operation("revoke", "unknown", outcome.value)
        logger.info("token_revoked", token=fingerprint(token_id or ""), outcome=outcome.value)
        return outcome

    async def sweep(self) -> int:
        return await self.sweeper.sweep()

    async def issue_and_notify(
        self,
        subject: str,
        notifier: Notifier,
        kind: TokenKind = TokenKind.CODE,
        ttl: Optional[TTL] = None,
        supersede: bool = False,
    ) -> Token:
        """Issue a token and hand it to ``notifier``.

        If delivery fails the token is revoked before ``DeliveryError`` is
        raised, so an undelivered token never stays redeemable. With
        ``supersede`` a delivered token replaces every earlier token of the
        same kind for ``subject``; a failed delivery leaves them in place.
        """
        token = await self.issue(subject, ttl=ttl, kind=kind)
        try:
            delivered = await notifier.notify(subject, token)
        except Exception as e:
            logger.exception("token_notify_raised", token=fingerprint(token.id), error=str(e))
            delivered = False
        if not delivered:
            await self.revoke(token.id)
            if NOTIFY_FAILURES is not None:
                NOTIFY_FAILURES.labels(kind=token.kind.value).inc()
            logger.warning("token_notify_failed", token=fingerprint(token.id), kind=token.kind.value)
            raise DeliveryError(subject)
        if supersede:
            await self.revoke_others(subject, token.kind, keep=token.id)
        return token

    async def revoke_others(self, subject: str, kind: TokenKind, keep: str) -> int:
        """Revoke every token of ``kind`` held by ``subject`` except ``keep``."""
        revoked = 0
        for other in await self.store.list_tokens(subject=subject, kind=kind):
            if other.id != keep and await self.store.delete(other.id):
                revoked += 1
        if revoked:
            record_token_operation("supersede", kind.value, "ok")
            logger.info("tokens_superseded", kind=kind.value, revoked=revoked, kept=fingerprint(keep))
        return revoked

    async def list_tokens(
        self, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> List[Token]:
        return await self.store.list_tokens(subject=subject, kind=kind)

    async def time_remaining(self, token_id: str) -> Optional[timedelta]:
        """Remaining lifetime of a currently valid token, for countdown displays."""
        result = await self.validator.validate(token_id)
        if not result.ok or result.token is None:
            return None
        return result.token.time_remaining(self.clock.now())
