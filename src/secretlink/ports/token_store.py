from datetime import datetime
from typing import List, Optional, Protocol

from ..domain.token import Token, TokenKind


class TokenStore(Protocol):
    """Protocol for token storage.

    Implementations raise ``StorageError`` on any infrastructure failure,
    timeouts included. A failure is never reported as a missing token.
    """

    async def get(self, token_id: str) -> Optional[Token]: ...

    async def put(self, token: Token) -> bool:
        """Insert ``token`` unless its id is already taken. False on collision."""
        ...

    async def delete(self, token_id: str) -> bool: ...

    async def list_tokens(
        self, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> List[Token]: ...

    async def mark_consumed(self, token_id: str, at: datetime) -> Optional[Token]:
        """Atomically set consumed_at if unset and the token is unexpired at ``at``."""
        ...

    async def delete_if_expired(self, token_id: str, now: datetime) -> bool: ...

    async def purge_expired(self, now: datetime) -> int: ...

    async def count(self) -> int:
        """Number of stored records, expired or not."""
        ...

    async def close(self) -> None: ...
