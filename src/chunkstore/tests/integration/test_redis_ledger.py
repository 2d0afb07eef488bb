"""Runs against a live redis, pointed at by REDIS_URL."""
import asyncio
import os
from uuid import uuid4

import pytest

from chunkstore.exceptions import ChunkTooLargeError, SessionNotOpenError
from chunkstore.managers import RedisLedgerManager, SessionState


pytestmark = pytest.mark.skipif(
    'REDIS_URL' not in os.environ, reason="REDIS_URL is not set."
)


@pytest.fixture()
def ledger(app):
    return RedisLedgerManager(
        app=app,
        url=os.environ['REDIS_URL'],
        prefix=f"chunkstore-test-{uuid4().hex}:",
        tombstone_ttl=60,
    )


@pytest.mark.asyncio
async def test_consume_and_finalize(ledger):
    await ledger.open('k', budget=10, ttl=60)

    assert await ledger.consume('k', 4) == 6
    with pytest.raises(ChunkTooLargeError):
        await ledger.consume('k', 7)
    assert (await ledger.status('k')).remaining == 6

    assert await ledger.finalize('k') is True
    assert await ledger.finalize('k') is False
    with pytest.raises(SessionNotOpenError) as exc:
        await ledger.consume('k', 1)
    assert exc.value.detail == "Data is already saved."
    await ledger.close()


@pytest.mark.asyncio
async def test_never_opened(ledger):
    assert (await ledger.status('k')).state == SessionState.EXPIRED
    with pytest.raises(SessionNotOpenError):
        await ledger.consume('k', 1)
    await ledger.close()


@pytest.mark.asyncio
async def test_refund_and_discard(ledger):
    await ledger.open('k', budget=10, ttl=60)
    await ledger.consume('k', 8)
    await ledger.refund('k', 20)
    assert (await ledger.status('k')).remaining == 10

    await ledger.discard('k')
    assert (await ledger.status('k')).state == SessionState.EXPIRED
    await ledger.close()


@pytest.mark.asyncio
async def test_concurrent_consume(ledger):
    await ledger.open('k', budget=450, ttl=60)

    results = await asyncio.gather(
        *(ledger.consume('k', 100) for _ in range(10)), return_exceptions=True
    )

    assert len([r for r in results if not isinstance(r, Exception)]) == 4
    assert (await ledger.status('k')).remaining == 50
    await ledger.close()
