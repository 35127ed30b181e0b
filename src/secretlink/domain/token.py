"""Token domain model and lookup outcomes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

# Fixed width so serialized timestamps sort lexicographically in time order
RECORD_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

PUBLIC_FAILURE_MESSAGE = "invalid or expired"


class TokenKind(str, Enum):
    LINK = "link"  # redeemable repeatedly until expiry
    CODE = "code"  # redeemable once


@dataclass(slots=True, frozen=True)
class Token:
    """A short-lived bearer token bound to a subject."""

    id: str
    subject: str
    kind: TokenKind
    created_at: datetime
    expires_at: datetime
    consumed_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("token id must not be empty")
        if not self.subject:
            raise ValueError("token subject must not be empty")
        if not isinstance(self.kind, TokenKind):
            object.__setattr__(self, "kind", TokenKind(self.kind))
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_valid(self, now: datetime) -> bool:
        if self.is_expired(now):
            return False
        return self.kind is TokenKind.LINK or self.consumed_at is None

    def consumed(self, at: datetime) -> "Token":
        return replace(self, consumed_at=at)

    def time_remaining(self, now: datetime) -> timedelta:
        """Time until expiry, clamped at zero. Display only."""
        remaining = self.expires_at - now
        if remaining < timedelta(0):
            return timedelta(0)
        return remaining

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "kind": self.kind.value,
            "created_at": format_timestamp(self.created_at),
            "expires_at": format_timestamp(self.expires_at),
            "consumed_at": (
                format_timestamp(self.consumed_at) if self.consumed_at is not None else None
            ),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Token":
        consumed_raw = record.get("consumed_at")
        return cls(
            id=str(record["id"]),
            subject=str(record["subject"]),
            kind=TokenKind(record["kind"]),
            created_at=parse_timestamp(record["created_at"]),
            expires_at=parse_timestamp(record["expires_at"]),
            consumed_at=parse_timestamp(consumed_raw) if consumed_raw else None,
        )


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(RECORD_TIME_FORMAT)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value)
    try:
        return datetime.strptime(text, RECORD_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_time_remaining(remaining: timedelta) -> str:
    """Render a countdown the way the link generator page shows it."""
    total = int(remaining.total_seconds())
    if total <= 0:
        return "Expired"
    minutes, seconds = divmod(total, 60)
    return f"{minutes}m {seconds}s"


class ValidationOutcome(str, Enum):
    VALID = "valid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_CONSUMED = "already_consumed"


class RedemptionOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_CONSUMED = "already_consumed"

    @classmethod
    def from_validation(cls, outcome: ValidationOutcome) -> "RedemptionOutcome":
        if outcome is ValidationOutcome.VALID:
            return cls.OK
        return cls(outcome.value)


class RevocationOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"


@dataclass(slots=True, frozen=True)
class ValidationResult:
    outcome: ValidationOutcome
    token: Optional[Token] = None

    @property
    def ok(self) -> bool:
        return self.outcome is ValidationOutcome.VALID

    @property
    def public_message(self) -> Optional[str]:
        # the boundary never reveals which failure happened
        return None if self.ok else PUBLIC_FAILURE_MESSAGE


@dataclass(slots=True, frozen=True)
class RedemptionResult:
    outcome: RedemptionOutcome
    token: Optional[Token] = None

    @property
    def ok(self) -> bool:
        return self.outcome is RedemptionOutcome.OK

    @property
    def public_message(self) -> Optional[str]:
        return None if self.ok else PUBLIC_FAILURE_MESSAGE


__all__ = [
    "Token",
    "TokenKind",
    "ValidationOutcome",
    "ValidationResult",
    "RedemptionOutcome",
    "RedemptionResult",
    "RevocationOutcome",
    "PUBLIC_FAILURE_MESSAGE",
    "format_time_remaining",
    "format_timestamp",
    "parse_timestamp",
]
