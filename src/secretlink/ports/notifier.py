from typing import Protocol

from ..domain.token import Token


class Notifier(Protocol):
    """Protocol for out-of-band token delivery (email, displayed URL)."""

    async def notify(self, subject: str, token: Token) -> bool: ...
