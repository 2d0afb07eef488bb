import pytest

from chunkstore.exceptions import ChunkTooLargeError, SessionNotOpenError
from chunkstore.managers import MemoryLedgerManager, SessionState


@pytest.fixture()
def ledger(app, clock):
    return MemoryLedgerManager(app=app, tombstone_ttl=60, clock=clock)


@pytest.mark.asyncio
async def test_open_and_consume(ledger):
    await ledger.open('k', budget=10, ttl=3600)

    assert await ledger.consume('k', 4) == 6
    assert await ledger.consume('k', 6) == 0
    assert (await ledger.status('k')).remaining == 0


@pytest.mark.asyncio
async def test_zero_length_chunk_on_spent_budget(ledger):
    await ledger.open('k', budget=3, ttl=3600)
    await ledger.consume('k', 3)

    assert await ledger.consume('k', 0) == 0


@pytest.mark.asyncio
async def test_overrun_leaves_entry_unchanged(ledger):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.consume('k', 8)

    with pytest.raises(ChunkTooLargeError) as exc:
        await ledger.consume('k', 3)
    assert 'pending=2, length=3' in exc.value.detail
    assert (await ledger.status('k')).remaining == 2


@pytest.mark.asyncio
async def test_never_opened(ledger):
    assert (await ledger.status('k')).state == SessionState.EXPIRED

    with pytest.raises(SessionNotOpenError):
        await ledger.consume('k', 1)


@pytest.mark.asyncio
async def test_expiry(ledger, clock):
    await ledger.open('k', budget=10, ttl=30)
    clock.advance(29)
    assert (await ledger.status('k')).state == SessionState.OPEN

    clock.advance(1)
    assert (await ledger.status('k')).state == SessionState.EXPIRED
    with pytest.raises(SessionNotOpenError) as exc:
        await ledger.consume('k', 1)
    assert 'expired' in exc.value.detail


@pytest.mark.asyncio
async def test_finalize_once(ledger):
    await ledger.open('k', budget=10, ttl=3600)

    assert await ledger.finalize('k') is True
    assert await ledger.finalize('k') is False
    assert (await ledger.status('k')).state == SessionState.FINALIZED

    with pytest.raises(SessionNotOpenError) as exc:
        await ledger.consume('k', 1)
    assert exc.value.detail == "Data is already saved."


@pytest.mark.asyncio
async def test_tombstone_expires(ledger, clock):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.finalize('k')
    clock.advance(60)

    assert (await ledger.status('k')).state == SessionState.EXPIRED


@pytest.mark.asyncio
async def test_refund(ledger):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.consume('k', 7)
    await ledger.refund('k', 7)
    assert (await ledger.status('k')).remaining == 10

    # Never exceeds the initial budget.
    await ledger.refund('k', 5)
    assert (await ledger.status('k')).remaining == 10


@pytest.mark.asyncio
async def test_refund_on_closed_entry(ledger):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.finalize('k')
    await ledger.refund('k', 5)

    assert (await ledger.status('k')).state == SessionState.FINALIZED


@pytest.mark.asyncio
async def test_reopen_clears_tombstone(ledger):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.finalize('k')
    await ledger.open('k', budget=5, ttl=3600)

    status = await ledger.status('k')
    assert status.state == SessionState.OPEN
    assert status.remaining == 5


@pytest.mark.asyncio
async def test_discard(ledger):
    await ledger.open('k', budget=10, ttl=3600)
    await ledger.finalize('k')
    await ledger.discard('k')

    assert (await ledger.status('k')).state == SessionState.EXPIRED
