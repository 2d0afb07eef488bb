"""Multipart object store interface."""
from __future__ import annotations
from abc import abstractmethod
from dataclasses import dataclass
from typing import List

from chunkstore.component import ApiManager


@dataclass(frozen=True)
class MultipartUpload:
    """Handle on an open multipart upload."""
    key: str
    upload_id: str


@dataclass(frozen=True)
class UploadedPart:
    """Part receipt, handed back to the store on completion."""
    part_number: int
    etag: str

    def dump(self):
        return {'partNumber': self.part_number, 'etag': self.etag}


@dataclass(frozen=True)
class StoredObject:
    key: str
    data: bytes
    etag: str
    content_type: str | None = None


class ObjectStoreManager(ApiManager):
    """Durable multipart object store, strongly consistent per key.

    Implementations translate their backend failures into:
    - :class:`chunkstore.exceptions.UploadNotFoundError` when an upload cannot be resumed
    - :class:`chunkstore.exceptions.ObjectNotFoundError` when an object is absent
    - :class:`chunkstore.exceptions.PartsMismatchError` on a rejected completion notice
    - :class:`chunkstore.exceptions.ManagerError` otherwise
    """
    @abstractmethod
    async def create_multipart_upload(self, key: str, content_type: str) -> MultipartUpload:
        raise NotImplementedError

    @abstractmethod
    async def resume_multipart_upload(self, key: str, upload_id: str) -> MultipartUpload:
        raise NotImplementedError

    @abstractmethod
    async def upload_part(
        self,
        upload: MultipartUpload,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        raise NotImplementedError

    @abstractmethod
    async def complete_multipart_upload(
        self,
        upload: MultipartUpload,
        parts: List[UploadedPart]
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    async def abort_multipart_upload(self, upload: MultipartUpload) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_object(self, key: str) -> StoredObject:
        raise NotImplementedError

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        raise NotImplementedError
