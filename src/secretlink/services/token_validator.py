from datetime import datetime
from typing import Optional

from ..domain.token import TokenKind, ValidationOutcome, ValidationResult
from ..logging_config import get_logger
from ..metrics import record_token_operation
from ..ports.clock import Clock
from ..ports.token_store import TokenStore
from ..utils.masking import fingerprint

logger = get_logger(__name__)


class TokenValidator:
    """Checks a presented token id against the store and the clock.

    Read-only apart from removing a token it finds expired; that delete is
    conditional on expiry so repeating it is harmless.
    """

    def __init__(self, store: TokenStore, clock: Clock):
        self.store = store
        self.clock = clock

    async def validate(self, token_id: str, now: Optional[datetime] = None) -> ValidationResult:
        if now is None:
            now = self.clock.now()
        token = await self.store.get(token_id) if token_id else None

        if token is None:
            result = ValidationResult(ValidationOutcome.NOT_FOUND)
        elif token.is_expired(now):
            await self.store.delete_if_expired(token.id, now)
            result = ValidationResult(ValidationOutcome.EXPIRED, token)
        elif token.kind is TokenKind.CODE and token.consumed_at is not None:
            result = ValidationResult(ValidationOutcome.ALREADY_CONSUMED, token)
        else:
            result = ValidationResult(ValidationOutcome.VALID, token)

        kind = token.kind.value if token is not None else "unknown"
        record_token_operation("validate", kind, result.outcome.value)
        logger.debug(
            "token_validation",
            token=fingerprint(token_id or ""),
            kind=kind,
            outcome=result.outcome.value,
        )
        return result
