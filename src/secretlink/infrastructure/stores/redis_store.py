"""Redis-backed token store.

Records are JSON blobs under ``{prefix}{id}``. Conditional writes run as Lua
scripts so each one is a single atomic server-side step. Record timestamps
are fixed-width UTC strings, which lets the scripts compare them as strings.
"""

import asyncio
import json
import time
from datetime import datetime, timedelta
from typing import Any, List, Optional

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from ...domain.token import Token, TokenKind, format_timestamp
from ...exceptions import StorageError
from ...logging_config import get_logger
from ...metrics import record_store_operation

logger = get_logger(__name__)

BACKEND = "redis"

# KEYS[1] token key, ARGV[1] consumption timestamp
_MARK_CONSUMED_LUA = """
local raw = redis.call('GET', KEYS[1])
if not raw then return false end
local rec = cjson.decode(raw)
if rec['consumed_at'] ~= nil and rec['consumed_at'] ~= cjson.null then return false end
if rec['expires_at'] <= ARGV[1] then return false end
rec['consumed_at'] = ARGV[1]
local encoded = cjson.encode(rec)
redis.call('SET', KEYS[1], encoded, 'KEEPTTL')
return encoded
"""

# KEYS[1] token key, ARGV[1] current timestamp
_DELETE_IF_EXPIRED_LUA = """
local raw = redis.call('GET', KEYS[1])
if not raw then return 0 end
local rec = cjson.decode(raw)
if rec['expires_at'] <= ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


def _decode(raw: Any) -> Optional[Token]:
    if not raw:
        return None
    text = raw.decode() if isinstance(raw, bytes) else str(raw)
    try:
        return Token.from_record(json.loads(text))
    except (ValueError, KeyError) as e:
        raise StorageError("corrupt token record in redis") from e


class RedisTokenStore:
    def __init__(self, client: Any, key_prefix: str = "token:", expired_retention_seconds: int = 3600):
        self.client = client
        self.key_prefix = key_prefix
        self.expired_retention_seconds = expired_retention_seconds

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = "token:",
        expired_retention_seconds: int = 3600,
        timeout_seconds: float = 5.0,
    ) -> "RedisTokenStore":
        client = redis_asyncio.from_url(
            url,
            decode_responses=False,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client, key_prefix=key_prefix, expired_retention_seconds=expired_retention_seconds)

    def _key(self, token_id: str) -> str:
        return f"{self.key_prefix}{token_id}"

    async def _call(self, operation: str, coro) -> Any:
        start = time.time()
        try:
            result = await coro
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            record_store_operation(operation, BACKEND, time.time() - start, failed=True)
            logger.error("token_store_failed", operation=operation, backend=BACKEND, error=str(e))
            raise StorageError(f"token store {operation} failed") from e
        record_store_operation(operation, BACKEND, time.time() - start)
        return result

    async def get(self, token_id: str) -> Optional[Token]:
        raw = await self._call("get", self.client.get(self._key(token_id)))
        return _decode(raw)

    async def put(self, token: Token) -> bool:
        # redis drops the key on its own some time after expiry
        evict_at = token.expires_at + timedelta(seconds=self.expired_retention_seconds)
        inserted = await self._call(
            "put",
            self.client.set(
                self._key(token.id),
                json.dumps(token.to_record()),
                nx=True,
                exat=int(evict_at.timestamp()) + 1,
            ),
        )
        return bool(inserted)

    async def delete(self, token_id: str) -> bool:
        removed = await self._call("delete", self.client.delete(self._key(token_id)))
        return bool(removed)

    async def _keys(self) -> List[Any]:
        async def _scan():
            return [k async for k in self.client.scan_iter(match=f"{self.key_prefix}*")]

        return await self._call("scan", _scan())

    async def list_tokens(
        self, subject: Optional[str] = None, kind: Optional[TokenKind] = None
    ) -> List[Token]:
        keys = await self._keys()
        if not keys:
            return []
        raws = await self._call("list", self.client.mget(keys))
        tokens = []
        for raw in raws:
            token = _decode(raw)
            if token is None:
                continue
            if subject is not None and token.subject != subject:
                continue
            if kind is not None and token.kind is not kind:
                continue
            tokens.append(token)
        return sorted(tokens, key=lambda t: t.created_at)

    async def mark_consumed(self, token_id: str, at: datetime) -> Optional[Token]:
        raw = await self._call(
            "mark_consumed",
            self.client.eval(_MARK_CONSUMED_LUA, 1, self._key(token_id), format_timestamp(at)),
        )
        return _decode(raw)

    async def delete_if_expired(self, token_id: str, now: datetime) -> bool:
        removed = await self._call(
            "delete_if_expired",
            self.client.eval(_DELETE_IF_EXPIRED_LUA, 1, self._key(token_id), format_timestamp(now)),
        )
        return bool(removed)

    async def purge_expired(self, now: datetime) -> int:
        stamp = format_timestamp(now)
        count = 0
        for key in await self._keys():
            removed = await self._call(
                "delete_if_expired", self.client.eval(_DELETE_IF_EXPIRED_LUA, 1, key, stamp)
            )
            count += int(removed or 0)
        return count

    async def count(self) -> int:
        return len(await self._keys())

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.debug("redis_client_close_failed", error=str(e))
