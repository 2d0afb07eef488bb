from __future__ import annotations
from typing import TYPE_CHECKING

from redis.asyncio import Redis
from redis.exceptions import RedisError

from chunkstore.exceptions import ManagerError
from .ledger import (
    LedgerManager, LedgerStatus, SessionState, chunk_too_large, session_not_open
)

if TYPE_CHECKING:
    from chunkstore.api import Api


# KEYS[1]: budget hash, KEYS[2]: tombstone - ARGV[1]: chunk length
CONSUME_SCRIPT = """
local remaining = redis.call('HGET', KEYS[1], 'remaining')
if not remaining then
    if redis.call('EXISTS', KEYS[2]) == 1 then
        return {-2, 0}
    end
    return {-1, 0}
end
remaining = tonumber(remaining)
local left = remaining - tonumber(ARGV[1])
if left < 0 then
    return {-3, remaining}
end
redis.call('HSET', KEYS[1], 'remaining', left)
return {0, left}
"""

# KEYS[1]: budget hash - ARGV[1]: bytes to give back
REFUND_SCRIPT = """
local remaining = redis.call('HGET', KEYS[1], 'remaining')
if not remaining then
    return 0
end
local budget = tonumber(redis.call('HGET', KEYS[1], 'budget'))
redis.call('HSET', KEYS[1], 'remaining', math.min(budget, tonumber(remaining) + tonumber(ARGV[1])))
return 1
"""

# KEYS[1]: budget hash, KEYS[2]: tombstone - ARGV[1]: tombstone ttl
FINALIZE_SCRIPT = """
local existed = redis.call('DEL', KEYS[1])
if tonumber(ARGV[1]) > 0 then
    redis.call('SET', KEYS[2], '1', 'EX', ARGV[1])
end
return existed
"""


class RedisLedgerManager(LedgerManager):
    """Ledger held in Redis. Every read-modify-write runs as a Lua script,
    hence is atomic per key across server instances.

    Layout: `<prefix><key>` hash {remaining, budget} with the session ttl,
    `<prefix><key>:finalized` tombstone string.
    """
    def __init__(self, app: Api, url: str, prefix: str, tombstone_ttl: int) -> None:
        super().__init__(app=app, tombstone_ttl=tombstone_ttl)
        self.url = url
        self.prefix = prefix
        self.redis = Redis.from_url(url, decode_responses=True)
        self._consume = self.redis.register_script(CONSUME_SCRIPT)
        self._refund = self.redis.register_script(REFUND_SCRIPT)
        self._finalize = self.redis.register_script(FINALIZE_SCRIPT)

    @property
    def endpoint(self) -> str:
        return self.url

    def _keys(self, key: str):
        return [f"{self.prefix}{key}", f"{self.prefix}{key}:finalized"]

    async def open(self, key: str, budget: int, ttl: int) -> None:
        entry, tombstone = self._keys(key)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(entry, tombstone)
                pipe.hset(entry, mapping={'remaining': budget, 'budget': budget})
                pipe.expire(entry, ttl)
                await pipe.execute()
        except RedisError as e:
            raise ManagerError(str(e))

    async def consume(self, key: str, nbytes: int) -> int:
        try:
            code, value = await self._consume(keys=self._keys(key), args=[nbytes])
        except RedisError as e:
            raise ManagerError(str(e))

        match int(code):
            case -1:
                raise session_not_open(key, SessionState.EXPIRED)
            case -2:
                raise session_not_open(key, SessionState.FINALIZED)
            case -3:
                raise chunk_too_large(int(value), nbytes)
        return int(value)

    async def refund(self, key: str, nbytes: int) -> None:
        try:
            await self._refund(keys=self._keys(key)[:1], args=[nbytes])
        except RedisError as e:
            raise ManagerError(str(e))

    async def status(self, key: str) -> LedgerStatus:
        entry, tombstone = self._keys(key)
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hget(entry, 'remaining')
                pipe.exists(tombstone)
                remaining, finalized = await pipe.execute()
        except RedisError as e:
            raise ManagerError(str(e))

        if remaining is not None:
            return LedgerStatus(state=SessionState.OPEN, remaining=int(remaining))
        if finalized:
            return LedgerStatus(state=SessionState.FINALIZED)
        return LedgerStatus(state=SessionState.EXPIRED)

    async def finalize(self, key: str) -> bool:
        try:
            existed = await self._finalize(keys=self._keys(key), args=[self.tombstone_ttl])
        except RedisError as e:
            raise ManagerError(str(e))
        return bool(existed)

    async def discard(self, key: str) -> None:
        try:
            await self.redis.delete(*self._keys(key))
        except RedisError as e:
            raise ManagerError(str(e))

    async def close(self) -> None:
        await self.redis.aclose()
