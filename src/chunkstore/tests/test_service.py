import asyncio

import pytest

from chunkstore.components.services import MAX_THUMBNAIL_SIZE, ResourceService, UploadService
from chunkstore.exceptions import (
    ChunkTooLargeError,
    FileTooLargeError,
    ManagerError,
    ObjectNotFoundError,
    RequestEntityTooLargeError,
    SessionNotOpenError,
    UploadNotFoundError,
)
from chunkstore.managers import MemoryStoreManager, SessionState


class SlowStore(MemoryStoreManager):
    """Yields to the event loop before storing, so that concurrent appends interleave."""
    async def upload_part(self, upload, part_number, data):
        await asyncio.sleep(0)
        return await super().upload_part(upload, part_number, data)


class FailingStore(MemoryStoreManager):
    """Accepts sessions, fails every part upload and abort."""
    async def upload_part(self, upload, part_number, data):
        raise ManagerError("bucket unavailable")

    async def abort_multipart_upload(self, upload):
        raise ManagerError("bucket unavailable")


class HangingStore(MemoryStoreManager):
    """Never finishes storing a part."""
    async def upload_part(self, upload, part_number, data):
        await asyncio.Event().wait()


def make_service(app, store_cls=MemoryStoreManager, size_limit=0) -> ResourceService:
    uploads = UploadService(app=app, store=store_cls(app=app), ledger=app.ledger, ttl=3600)
    return ResourceService(app=app, uploads=uploads, size_limit=size_limit)


@pytest.mark.asyncio
async def test_create_pairs_thumbnail(app):
    svc = make_service(app)
    created = await svc.create('video/mp4', 3, resource_id='r')

    assert (await svc.status('r')).remaining == 3
    assert (await svc.status('r', thumbnail=True)).remaining == MAX_THUMBNAIL_SIZE
    await svc.uploads.store.resume_multipart_upload('r', created['uploadId'])
    await svc.uploads.store.resume_multipart_upload('r-thumbnail', created['thumbnailUploadId'])


@pytest.mark.asyncio
async def test_create_over_limit(app):
    svc = make_service(app, size_limit=100)

    with pytest.raises(FileTooLargeError):
        await svc.create('video/mp4', 101)
    assert (await svc.create('video/mp4', 100))['id']


@pytest.mark.parametrize("budget, lengths, accepted", [
    (10, [3, 3, 3, 3], 3),
    (10, [5, 5], 2),
    (10, [11], 0),
    (10, [4, 0, 6, 1], 3),
    (0, [0, 1], 1),
])
@pytest.mark.asyncio
async def test_sequential_prefix_sums(app, budget, lengths, accepted):
    svc = make_service(app)
    created = await svc.uploads.open('r', 'application/octet-stream', budget)

    results = []
    for i, length in enumerate(lengths, start=1):
        try:
            await svc.append('r', created.upload_id, i, b'x' * length)
            results.append(True)
        except ChunkTooLargeError:
            results.append(False)

    assert results == [True] * accepted + [False] * (len(lengths) - accepted)


@pytest.mark.parametrize("n, length, budget", [(10, 100, 450), (5, 10, 1000), (8, 7, 7)])
@pytest.mark.asyncio
async def test_concurrent_appends(app, n, length, budget):
    svc = make_service(app, store_cls=SlowStore)
    upload = await svc.uploads.open('r', 'application/octet-stream', budget)

    results = await asyncio.gather(*(
        svc.append('r', upload.upload_id, i, b'x' * length)
        for i in range(1, n + 1)
    ), return_exceptions=True)

    accepted = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, Exception)]
    assert len(accepted) == min(n, budget // length)
    assert all(isinstance(r, ChunkTooLargeError) for r in rejected)
    assert (await svc.status('r')).remaining == budget - len(accepted) * length


@pytest.mark.asyncio
async def test_append_refunds_on_store_failure(app):
    svc = make_service(app, store_cls=FailingStore)
    upload = await svc.uploads.open('r', 'application/octet-stream', 10)

    with pytest.raises(ManagerError):
        await svc.append('r', upload.upload_id, 1, b'abcd')
    assert (await svc.status('r')).remaining == 10


@pytest.mark.asyncio
async def test_append_refunds_on_cancel(app):
    svc = make_service(app, store_cls=HangingStore)
    upload = await svc.uploads.open('r', 'application/octet-stream', 10)

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(svc.append('r', upload.upload_id, 1, b'abcd'), 0.05)
    assert (await svc.status('r')).remaining == 10


@pytest.mark.asyncio
async def test_append_refunds_on_unknown_upload(app):
    svc = make_service(app)
    await svc.uploads.open('r', 'application/octet-stream', 10)

    with pytest.raises(UploadNotFoundError):
        await svc.append('r', 'bogus', 1, b'abcd')
    assert (await svc.status('r')).remaining == 10


@pytest.mark.asyncio
async def test_append_not_open_is_quota_error(app):
    svc = make_service(app)

    with pytest.raises(SessionNotOpenError) as exc:
        await svc.append('nope', 'bogus', 1, b'a')
    assert isinstance(exc.value, RequestEntityTooLargeError)


@pytest.mark.asyncio
async def test_complete_then_retrieve(app):
    svc = make_service(app)
    created = await svc.create('image/png', 10, resource_id='r')
    p1 = await svc.append('r', created['uploadId'], 1, b'hello ')
    p2 = await svc.append('r', created['uploadId'], 2, b'you')

    with pytest.raises(ObjectNotFoundError):
        await svc.retrieve('r')

    assert await svc.complete('r', created['uploadId'], [p1, p2]) == 'r'
    obj = await svc.retrieve('r')
    assert obj.data == b'hello you'
    assert obj.content_type == 'image/png'
    assert obj.etag.endswith('-2')
    assert (await svc.status('r')).state == SessionState.FINALIZED

    with pytest.raises(UploadNotFoundError):
        await svc.complete('r', created['uploadId'], [p1, p2])


@pytest.mark.asyncio
async def test_abort_closes_ledger_when_store_fails(app):
    svc = make_service(app, store_cls=FailingStore)
    created = await svc.create('image/png', 10, resource_id='r')

    with pytest.raises(ManagerError):
        await svc.abort('r', created['uploadId'])
    assert (await svc.status('r')).state == SessionState.FINALIZED
    # Thumbnail is a sibling, not a dependant.
    assert (await svc.status('r', thumbnail=True)).state == SessionState.OPEN


@pytest.mark.asyncio
async def test_abort_twice(app):
    svc = make_service(app)
    created = await svc.create('image/png', 10, resource_id='r')

    assert await svc.abort('r', created['uploadId']) == 'r'
    with pytest.raises(UploadNotFoundError):
        await svc.abort('r', created['uploadId'])


@pytest.mark.asyncio
async def test_delete_discards_ledger_entry(app):
    svc = make_service(app)
    created = await svc.create('image/png', 10, resource_id='r')

    assert await svc.delete('r') == 'r'
    assert (await svc.status('r')).state == SessionState.EXPIRED
    # Multipart upload itself is left open.
    await svc.uploads.store.resume_multipart_upload('r', created['uploadId'])
