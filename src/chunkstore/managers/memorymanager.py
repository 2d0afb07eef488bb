from __future__ import annotations
from dataclasses import dataclass, field
from hashlib import md5
from threading import Lock
from typing import TYPE_CHECKING, Dict, List, Tuple
from uuid import uuid4

from chunkstore.exceptions import ObjectNotFoundError, PartsMismatchError, UploadNotFoundError
from .storage import MultipartUpload, ObjectStoreManager, StoredObject, UploadedPart

if TYPE_CHECKING:
    from chunkstore.api import Api


@dataclass
class _PendingUpload:
    content_type: str
    parts: Dict[int, Tuple[str, bytes]] = field(default_factory=dict)


class MemoryStoreManager(ObjectStoreManager):
    """Keeps objects and pending uploads in process memory.

    ETags follow S3 conventions: md5 of a part, and md5 of concatenated part digests
    suffixed by the part count for an assembled object.
    """
    def __init__(self, app: Api) -> None:
        super().__init__(app=app)
        self._lock = Lock()
        self._uploads: Dict[Tuple[str, str], _PendingUpload] = {}
        self._objects: Dict[str, StoredObject] = {}

    @property
    def endpoint(self) -> str:
        return "memory://"

    async def create_multipart_upload(self, key: str, content_type: str) -> MultipartUpload:
        upload = MultipartUpload(key=key, upload_id=uuid4().hex)
        with self._lock:
            self._uploads[(key, upload.upload_id)] = _PendingUpload(content_type=content_type)
        return upload

    async def resume_multipart_upload(self, key: str, upload_id: str) -> MultipartUpload:
        with self._lock:
            if (key, upload_id) not in self._uploads:
                raise UploadNotFoundError("Resource not found.")
        return MultipartUpload(key=key, upload_id=upload_id)

    def _pending(self, upload: MultipartUpload) -> _PendingUpload:
        try:
            return self._uploads[(upload.key, upload.upload_id)]
        except KeyError:
            raise UploadNotFoundError("Resource not found.")

    async def upload_part(
        self,
        upload: MultipartUpload,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        etag = md5(data).hexdigest()
        with self._lock:
            # Re-uploading a part number replaces it.
            self._pending(upload).parts[part_number] = (etag, bytes(data))
        return UploadedPart(part_number=part_number, etag=etag)

    async def complete_multipart_upload(
        self,
        upload: MultipartUpload,
        parts: List[UploadedPart]
    ) -> str:
        with self._lock:
            pending = self._pending(upload)
            if not parts:
                raise PartsMismatchError("Completion notice lists no parts.")

            chunks, digests = [], []
            for part in parts:
                stored = pending.parts.get(part.part_number)
                if stored is None or stored[0] != part.etag.strip('"'):
                    raise PartsMismatchError(
                        f"Part {part.part_number} does not match any uploaded part."
                    )
                digests.append(bytes.fromhex(stored[0]))
                chunks.append(stored[1])

            etag = f"{md5(b''.join(digests)).hexdigest()}-{len(parts)}"
            self._objects[upload.key] = StoredObject(
                key=upload.key,
                data=b''.join(chunks),
                etag=etag,
                content_type=pending.content_type,
            )
            del self._uploads[(upload.key, upload.upload_id)]
        return upload.key

    async def abort_multipart_upload(self, upload: MultipartUpload) -> None:
        with self._lock:
            self._pending(upload)
            del self._uploads[(upload.key, upload.upload_id)]

    async def get_object(self, key: str) -> StoredObject:
        with self._lock:
            try:
                return self._objects[key]
            except KeyError:
                raise ObjectNotFoundError("Resource not found.")

    async def delete_object(self, key: str) -> None:
        with self._lock:
            self._objects.pop(key, None)
