from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import uuid4

from chunkstore.component import ApiService
from chunkstore.exceptions import FileTooLargeError
from chunkstore.managers import LedgerStatus, StoredObject, UploadedPart
from .uploadservice import UploadService

if TYPE_CHECKING:
    from chunkstore.api import Api


THUMBNAIL_SUFFIX = "-thumbnail"
THUMBNAIL_CONTENT_TYPE = "image/jpeg"
MAX_THUMBNAIL_SIZE = 1024 * 256 # 256KB


def thumbnail_id(resource_id: str) -> str:
    return f"{resource_id}{THUMBNAIL_SUFFIX}"


class ResourceService(ApiService):
    """Pairs every resource with a thumbnail sibling.

    Both are distinct upload sessions sharing a lifecycle, not a transaction:
    a failure on one side is never rolled back on the other.
    """
    def __init__(self, app: Api, uploads: UploadService, size_limit: int = 0) -> None:
        super().__init__(app=app)
        self.uploads = uploads
        self.size_limit = size_limit

    @staticmethod
    def key(resource_id: str, thumbnail: bool = False) -> str:
        return thumbnail_id(resource_id) if thumbnail else resource_id

    async def create(
        self,
        content_type: str,
        size: int,
        resource_id: str | None = None
    ) -> Dict[str, Any]:
        """Open primary and thumbnail upload sessions.

        :param content_type: primary resource content type
        :type content_type: str
        :param size: primary resource byte budget
        :type size: int
        :param resource_id: caller chosen id, generated if missing
        :type resource_id: str | None
        :raises FileTooLargeError: size over configured limit
        :return: ids of the resource and both uploads
        :rtype: Dict[str, Any]
        """
        if self.size_limit and size > self.size_limit:
            raise FileTooLargeError(f"Resource exceeding {self.size_limit} bytes.")

        resource_id = resource_id or uuid4().hex
        upload = await self.uploads.open(resource_id, content_type, size)
        thumb = await self.uploads.open(
            thumbnail_id(resource_id), THUMBNAIL_CONTENT_TYPE, MAX_THUMBNAIL_SIZE
        )
        return {
            'id': resource_id,
            'uploadId': upload.upload_id,
            'thumbnailUploadId': thumb.upload_id,
        }

    async def append(
        self,
        resource_id: str,
        upload_id: str,
        part_number: int,
        data: bytes,
        thumbnail: bool = False
    ) -> UploadedPart:
        return await self.uploads.append(
            self.key(resource_id, thumbnail), upload_id, part_number, data
        )

    async def complete(
        self,
        resource_id: str,
        upload_id: str,
        parts: List[UploadedPart],
        thumbnail: bool = False
    ) -> str:
        return await self.uploads.complete(self.key(resource_id, thumbnail), upload_id, parts)

    async def abort(self, resource_id: str, upload_id: str, thumbnail: bool = False) -> str:
        return await self.uploads.abort(self.key(resource_id, thumbnail), upload_id)

    async def retrieve(self, resource_id: str, thumbnail: bool = False) -> StoredObject:
        return await self.uploads.retrieve(self.key(resource_id, thumbnail))

    async def delete(self, resource_id: str, thumbnail: bool = False) -> str:
        return await self.uploads.delete(self.key(resource_id, thumbnail))

    async def status(self, resource_id: str, thumbnail: bool = False) -> LedgerStatus:
        return await self.uploads.status(self.key(resource_id, thumbnail))
