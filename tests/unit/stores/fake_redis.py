"""Minimal in-process stand-in for the redis.asyncio client calls the token store makes."""

import fnmatch
import json

from secretlink.infrastructure.stores import redis_store


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.expiry = {}
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, nx=False, exat=None):
        if nx and key in self.data:
            return None
        self.data[key] = value.encode() if isinstance(value, str) else value
        if exat is not None:
            self.expiry[key] = exat
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                self.expiry.pop(key, None)
                removed += 1
        return removed

    async def scan_iter(self, match="*"):
        for key in list(self.data):
            if fnmatch.fnmatch(key, match):
                yield key.encode()

    async def mget(self, keys):
        return [self.data.get(k.decode() if isinstance(k, bytes) else k) for k in keys]

    async def eval(self, script, numkeys, key, stamp):
        key = key.decode() if isinstance(key, bytes) else key
        raw = self.data.get(key)
        if raw is None:
            return None if script == redis_store._MARK_CONSUMED_LUA else 0
        rec = json.loads(raw)
        if script == redis_store._MARK_CONSUMED_LUA:
            if rec.get("consumed_at") is not None or rec["expires_at"] <= stamp:
                return None
            rec["consumed_at"] = stamp
            encoded = json.dumps(rec).encode()
            self.data[key] = encoded
            return encoded
        if script == redis_store._DELETE_IF_EXPIRED_LUA:
            if rec["expires_at"] <= stamp:
                return await self.delete(key)
            return 0
        raise AssertionError("unexpected script")

    async def aclose(self):
        self.closed = True
