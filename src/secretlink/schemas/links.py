from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..domain.token import Token, format_time_remaining

DEFAULT_LINK_SUBJECT = "secret-link"


class LinkCreateRequest(BaseModel):
    password: str
    subject: Optional[str] = None
    ttl_seconds: Optional[int] = Field(default=None, gt=0)


class LinkResponse(BaseModel):
    id: str
    subject: str
    url: str
    created_at: datetime
    expires_at: datetime
    seconds_remaining: int
    time_remaining: str
    expired: bool


class LinkListResponse(BaseModel):
    links: List[LinkResponse]
    total: int


class SweepResponse(BaseModel):
    evicted: int


def link_to_response(token: Token, now: datetime, frontend_url: str) -> LinkResponse:
    """Build the API view of a link token. ``now`` only feeds the countdown fields."""
    remaining = token.time_remaining(now)
    return LinkResponse(
        id=token.id,
        subject=token.subject,
        url=f"{frontend_url.rstrip('/')}/secret/{token.id}",
        created_at=token.created_at,
        expires_at=token.expires_at,
        seconds_remaining=int(remaining.total_seconds()),
        time_remaining=format_time_remaining(remaining),
        expired=token.is_expired(now),
    )
