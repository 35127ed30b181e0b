import asyncio
import time
from datetime import datetime
from typing import Dict, List, Optional

from ...domain.token import Token, TokenKind
from ...metrics import record_store_operation

BACKEND = "in_memory"


class InMemoryTokenStore:
    """Process-local token store.

    Every read-modify-write runs under one ``asyncio.Lock`` so check-and-set
    operations are atomic with respect to other coroutines on the same loop.
    """

    def __init__(self):
        # store: token id -> token
        self.store: Dict[str, Token] = {}
        self.lock = asyncio.Lock()

    async def get(self, token_id: str) -> Optional[Token]:
        start = time.time()
        async with self.lock:
            token = self.store.get(token_id)
        record_store_operation("get", BACKEND, time.time() - start)
        return token

    async def put(self, token: Token) -> bool:
        start = time.time()
        async with self.lock:
            if token.id in self.store:
                inserted = False
            else:
                self.store[token.id] = token
                inserted = True
        record_store_operation("put", BACKEND, time.time() - start)
        return inserted

    async def delete(self, token_id: str) -> bool:
        start = time.time()
        async with self.lock:
            removed = self.store.pop(token_id, None) is not None
        record_store_operation("delete", BACKEND, time.time() - start)
        return removed

    async def list_tokens(
        self, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> List[Token]:
        start = time.time()
        async with self.lock:
            tokens = [
                t
                for t in self.store.values()
                if (subject is None or t.subject == subject) and (kind is None or t.kind is kind)
            ]
        record_store_operation("list", BACKEND, time.time() - start)
        return sorted(tokens, key=lambda t: t.created_at)

    async def mark_consumed(self, token_id: str, at: datetime) -> Optional[Token]:
        start = time.time()
        async with self.lock:
            token = self.store.get(token_id)
            if token is None or token.consumed_at is not None or token.is_expired(at):
                updated = None
            else:
                updated = token.consumed(at)
                self.store[token_id] = updated
        record_store_operation("mark_consumed", BACKEND, time.time() - start)
        return updated

    async def delete_if_expired(self, token_id: str, now: datetime) -> bool:
        start = time.time()
        async with self.lock:
            token = self.store.get(token_id)
            removed = token is not None and token.is_expired(now)
            if removed:
                del self.store[token_id]
        record_store_operation("delete_if_expired", BACKEND, time.time() - start)
        return removed

    async def purge_expired(self, now: datetime) -> int:
        start = time.time()
        async with self.lock:
            expired = [tid for tid, t in self.store.items() if t.is_expired(now)]
            for tid in expired:
                del self.store[tid]
        record_store_operation("purge_expired", BACKEND, time.time() - start)
        return len(expired)

    async def count(self) -> int:
        start = time.time()
        async with self.lock:
            total = len(self.store)
        record_store_operation("count", BACKEND, time.time() - start)
        return total

    async def close(self) -> None:
        return
