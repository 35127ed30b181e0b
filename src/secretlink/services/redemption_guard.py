from typing import Optional

from ..domain.token import RedemptionOutcome, RedemptionResult, TokenKind
from ..logging_config import get_logger
from ..metrics import record_token_operation
from ..ports.clock import Clock
from ..ports.token_store import TokenStore
from ..utils.masking import fingerprint
from .token_validator import TokenValidator

logger = get_logger(__name__)


class RedemptionGuard:
    """Redeems tokens, allowing at most one successful redemption of a code."""

    def __init__(self, store: TokenStore, validator: TokenValidator, clock: Clock):
        self.store = store
        self.validator = validator
        self.clock = clock

    async def redeem(
        self, token_id: str, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> RedemptionResult:
        """Redeem ``token_id``. With ``subject`` or ``kind`` the token must match them.

        Validity is always re-checked here with a fresh clock reading. For
        code tokens the consumption is a compare-and-set in the store, so of
        several concurrent callers exactly one gets ``OK``.
        """
        now = self.clock.now()
        checked = await self.validator.validate(token_id, now=now)
        if not checked.ok:
            return self._finish(RedemptionResult(RedemptionOutcome.from_validation(checked.outcome)))

        token = checked.token
        assert token is not None
        if (subject is not None and token.subject != subject) or (
            kind is not None and token.kind is not kind
        ):
            # reported like an unknown id so codes cannot be tried across accounts
            return self._finish(RedemptionResult(RedemptionOutcome.NOT_FOUND), kind=token.kind)

        if token.kind is TokenKind.LINK:
            return self._finish(RedemptionResult(RedemptionOutcome.OK, token))

        consumed = await self.store.mark_consumed(token.id, now)
        if consumed is not None:
            return self._finish(RedemptionResult(RedemptionOutcome.OK, consumed))

        # lost the race, or the token expired or vanished in between
        current = await self.store.get(token.id)
        if current is None:
            outcome = RedemptionOutcome.NOT_FOUND
        elif current.consumed_at is not None:
            outcome = RedemptionOutcome.ALREADY_CONSUMED
        else:
            outcome = RedemptionOutcome.EXPIRED
        return self._finish(RedemptionResult(outcome), kind=token.kind)

    def _finish(self, result: RedemptionResult, kind: Optional[TokenKind] = None) -> RedemptionResult:
        if result.token is not None:
            kind = result.token.kind
        kind_label = kind.value if kind is not None else "unknown"
        record_token_operation("redeem", kind_label, result.outcome.value)
        if result.ok:
            logger.info(
                "token_redeemed",
                token=fingerprint(result.token.id),  # type: ignore[union-attr]
                kind=kind_label,
            )
        else:
            logger.info("token_redemption_rejected", kind=kind_label, outcome=result.outcome.value)
        return result
