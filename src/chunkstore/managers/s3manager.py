from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Dict, List

from boto3 import client
from botocore.exceptions import ClientError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Secret

from chunkstore.exceptions import (
    ManagerError, ObjectNotFoundError, PartsMismatchError, UploadNotFoundError
)
from .storage import MultipartUpload, ObjectStoreManager, StoredObject, UploadedPart

if TYPE_CHECKING:
    from chunkstore.api import Api


NOT_FOUND_CODES = ('NoSuchKey', 'NoSuchUpload', '404')
PARTS_ERROR_CODES = ('InvalidPart', 'InvalidPartOrder', 'EntityTooSmall', 'MalformedXML')


def _error_code(e: ClientError) -> str:
    return str(e.response.get('Error', {}).get('Code', ''))


class S3Manager(ObjectStoreManager):
    """Manages requests with an S3 storage instance.

    boto3 is blocking, calls are sent to starlette's threadpool.
    """
    def __init__(
        self,
        app: Api,
        endpoint_url: str,
        bucket_name: str,
        access_key_id: Secret,
        secret_access_key: Secret,
        region_name: str,
    ) -> None:
        super().__init__(app=app)
        self.endpoint_url = endpoint_url
        self.bucket_name = bucket_name
        self.region_name = region_name
        self.s3_client = client(
            's3',
            endpoint_url=endpoint_url,
            aws_access_key_id=str(access_key_id),
            aws_secret_access_key=str(secret_access_key),
            region_name=self.region_name,
        )

    @property
    def endpoint(self) -> str:
        return self.endpoint_url

    async def _call(self, method: Callable[..., Dict[str, Any]], **kwargs) -> Dict[str, Any]:
        return await run_in_threadpool(method, Bucket=self.bucket_name, **kwargs)

    async def create_multipart_upload(self, key: str, content_type: str) -> MultipartUpload:
        """Create multipart upload

        :param key: object key
        :type key: str
        :param content_type: final object content type
        :type content_type: str
        :raises ManagerError: When client fails to create multipart upload
        :return: Multipart upload handle
        :rtype: MultipartUpload
        """
        try:
            mpu = await self._call(
                self.s3_client.create_multipart_upload,
                Key=key,
                ContentType=content_type,
            )
            return MultipartUpload(key=key, upload_id=mpu['UploadId'])

        except ClientError as e:
            raise ManagerError(str(e))

    async def resume_multipart_upload(self, key: str, upload_id: str) -> MultipartUpload:
        """Check that an upload is still open by listing its parts.

        :raises UploadNotFoundError: upload is unknown, completed or aborted
        """
        try:
            await self._call(
                self.s3_client.list_parts,
                Key=key,
                UploadId=upload_id,
                MaxParts=1,
            )
            return MultipartUpload(key=key, upload_id=upload_id)

        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise UploadNotFoundError("Resource not found.")
            raise ManagerError(str(e))

    async def upload_part(
        self,
        upload: MultipartUpload,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        try:
            res = await self._call(
                self.s3_client.upload_part,
                Key=upload.key,
                UploadId=upload.upload_id,
                PartNumber=part_number,
                Body=data,
            )
            return UploadedPart(part_number=part_number, etag=res['ETag'].strip('"'))

        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise UploadNotFoundError("Resource not found.")
            raise ManagerError(str(e))

    async def complete_multipart_upload(
        self,
        upload: MultipartUpload,
        parts: List[UploadedPart]
    ) -> str:
        """Multipart upload Completion notice

        :param upload: multipart upload handle
        :type upload: MultipartUpload
        :param parts: Part - ETag mapping for all parts
        :type parts: List[UploadedPart]
        :raises PartsMismatchError: Bucket rejects the part list
        :raises ManagerError: Bucket returns another error
        :return: object key
        :rtype: str
        """
        try:
            await self._call(
                self.s3_client.complete_multipart_upload,
                Key=upload.key,
                UploadId=upload.upload_id,
                MultipartUpload={'Parts': [
                    {'PartNumber': p.part_number, 'ETag': p.etag} for p in parts
                ]},
            )
            return upload.key

        except ClientError as e:
            code = _error_code(e)
            if code in PARTS_ERROR_CODES:
                raise PartsMismatchError(
                    f"Completion notice rejected - bucket responded with '{code}'"
                )
            if code in NOT_FOUND_CODES:
                raise UploadNotFoundError("Resource not found.")
            raise ManagerError(str(e.response['Error']))

    async def abort_multipart_upload(self, upload: MultipartUpload) -> None:
        """Multipart upload termination notice

        :raises ManagerError: Bucket returns an error
        """
        try:
            await self._call(
                self.s3_client.abort_multipart_upload,
                Key=upload.key,
                UploadId=upload.upload_id,
            )

        except ClientError as e:
            raise ManagerError(str(e))

    async def get_object(self, key: str) -> StoredObject:
        def fetch():
            res = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
            return res, res['Body'].read()

        try:
            res, data = await run_in_threadpool(fetch)
            return StoredObject(
                key=key,
                data=data,
                etag=res.get('ETag', '').strip('"'),
                content_type=res.get('ContentType'),
            )

        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise ObjectNotFoundError("Resource not found.")
            raise ManagerError(str(e))

    async def delete_object(self, key: str) -> None:
        try:
            await self._call(self.s3_client.delete_object, Key=key)

        except ClientError as e:
            raise ManagerError(str(e))
