from __future__ import annotations
import asyncio
from typing import TYPE_CHECKING, List

from chunkstore.component import ApiService
from chunkstore.managers import (
    LedgerManager, LedgerStatus, MultipartUpload, ObjectStoreManager, StoredObject, UploadedPart
)

if TYPE_CHECKING:
    from chunkstore.api import Api


class UploadService(ApiService):
    """Upload session lifecycle for one object key, under a ledger byte budget.

    The object store and the ledger fail independently, ordering below keeps the ledger
    conservative: bytes are reserved before reaching the store and given back if the
    store refuses them.
    """
    def __init__(
        self,
        app: Api,
        store: ObjectStoreManager,
        ledger: LedgerManager,
        ttl: int
    ) -> None:
        super().__init__(app=app)
        self.store = store
        self.ledger = ledger
        self.ttl = ttl

    async def open(self, key: str, content_type: str, budget: int) -> MultipartUpload:
        """Open a multipart upload and its ledger entry."""
        upload = await self.store.create_multipart_upload(key, content_type)
        await self.ledger.open(key, budget, self.ttl)
        self.logger.debug("Opened upload %s for %s (budget=%d).", upload.upload_id, key, budget)
        return upload

    async def append(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        """Reserve len(data) bytes then forward the chunk.

        :raises SessionNotOpenError: no open ledger entry
        :raises ChunkTooLargeError: chunk exceeds remaining budget
        :raises UploadNotFoundError: upload cannot be resumed

        Bytes are refunded when the store refuses the chunk or the request is cancelled.
        A cancelled S3 part upload may still land from its worker thread, in which case
        the session budget overestimates what is left until completion.
        """
        remaining = await self.ledger.consume(key, len(data))
        try:
            upload = await self.store.resume_multipart_upload(key, upload_id)
            part = await self.store.upload_part(upload, part_number, data)
        except (Exception, asyncio.CancelledError):
            await self.ledger.refund(key, len(data))
            raise
        self.logger.debug(
            "Part %d of %s stored (length=%d, remaining=%d).",
            part_number, key, len(data), remaining
        )
        return part

    async def complete(self, key: str, upload_id: str, parts: List[UploadedPart]) -> str:
        """Assemble parts into the final object and close the ledger entry.

        :raises UploadNotFoundError: upload cannot be resumed
        """
        upload = await self.store.resume_multipart_upload(key, upload_id)
        await self.store.complete_multipart_upload(upload, parts)
        await self.ledger.finalize(key)
        self.logger.info("Upload %s completed as %s.", upload_id, key)
        return upload.key

    async def abort(self, key: str, upload_id: str) -> str:
        """Discard uploaded parts. Ledger entry is closed even if the store fails to abort."""
        upload = await self.store.resume_multipart_upload(key, upload_id)
        try:
            await self.store.abort_multipart_upload(upload)
        finally:
            await self.ledger.finalize(key)
        self.logger.info("Upload %s for %s aborted.", upload_id, key)
        return upload.key

    async def retrieve(self, key: str) -> StoredObject:
        return await self.store.get_object(key)

    async def delete(self, key: str) -> str:
        """Delete stored object and any ledger trace. Open multipart uploads are left as is."""
        await self.store.delete_object(key)
        await self.ledger.discard(key)
        self.logger.info("Deleted %s.", key)
        return key

    async def status(self, key: str) -> LedgerStatus:
        return await self.ledger.status(key)
