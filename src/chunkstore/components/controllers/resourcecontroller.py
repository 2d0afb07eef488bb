"""Controller exposing paired resource/thumbnail upload routes."""
from __future__ import annotations
from typing import TYPE_CHECKING, List

from starlette.requests import Request
from starlette.responses import Response
import starlette.routing as sr

from chunkstore.components.services import ResourceService
from chunkstore.schemas import (
    AbortResourceSchema, CompleteResourceSchema, CreateResourceSchema, UploadChunkSchema
)
from chunkstore.utils.security import login_required
from chunkstore.utils.utils import attachment_filename, json_response
from .controller import Controller, HttpMethod

if TYPE_CHECKING:
    from chunkstore.api import Api


DEFAULT_CONTENT_TYPE = "image/jpg"


class ResourceController(Controller):
    """Routes for a resource and its thumbnail, mapped onto a ResourceService.

    Each endpoint has a `_thumbnail` twin addressing the derived thumbnail id.
    """
    svc: ResourceService

    def __init__(self, app: Api) -> None:
        super().__init__(app=app)
        self.svc = app.resources

    def routes(self, **_) -> List[sr.Route]:
        return [
            sr.Route('/',                          self.create,             methods=[HttpMethod.POST]),
            sr.Route('/{id}',                      self.read,               methods=[HttpMethod.GET]),
            sr.Route('/{id}',                      self.upload,             methods=[HttpMethod.PUT]),
            sr.Route('/{id}',                      self.delete,             methods=[HttpMethod.DELETE]),
            sr.Route('/{id}/complete',             self.complete,           methods=[HttpMethod.POST]),
            sr.Route('/{id}/abort',                self.abort,              methods=[HttpMethod.DELETE]),
            sr.Route('/{id}/thumbnail',            self.read_thumbnail,     methods=[HttpMethod.GET]),
            sr.Route('/{id}/thumbnail',            self.upload_thumbnail,   methods=[HttpMethod.PUT]),
            sr.Route('/{id}/thumbnail',            self.delete_thumbnail,   methods=[HttpMethod.DELETE]),
            sr.Route('/{id}/thumbnail/complete',   self.complete_thumbnail, methods=[HttpMethod.POST]),
            sr.Route('/{id}/thumbnail/abort',      self.abort_thumbnail,    methods=[HttpMethod.DELETE]),
        ]

    @login_required
    async def create(self, request: Request) -> Response:
        """Open upload sessions for a new resource and its thumbnail.

        ---

        description: Create a resource, returns upload ids for the resource and its thumbnail.
        requestBody:
            required: true
            content:
                application/json:
                    schema: CreateResourceSchema
        responses:
            201:
                description: Upload sessions opened.
                content:
                    application/json:
                        schema: CreatedResourceSchema
            400:
                description: Wrong body.
                content:
                    application/json:
                        schema: ErrorSchema
            401:
                description: Missing or invalid bearer token.
                content:
                    application/json:
                        schema: ErrorSchema
            413:
                description: Declared size over limit.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        data = self.validate(CreateResourceSchema, await request.body())
        created = await self.svc.create(
            content_type=data['contentType'],
            size=data['size'],
            resource_id=data.get('id'),
        )
        return json_response(self.dumps(created), status_code=201)

    async def _read(self, request: Request, thumbnail: bool) -> Response:
        resource_id = request.path_params['id']
        obj = await self.svc.retrieve(resource_id, thumbnail=thumbnail)
        content_type = obj.content_type or DEFAULT_CONTENT_TYPE
        filename = attachment_filename(self.svc.key(resource_id, thumbnail), content_type)
        return Response(
            obj.data,
            status_code=200,
            headers={
                'ETag': obj.etag,
                'Content-Disposition': f'attachment; filename="{filename}"',
            },
            media_type=content_type,
        )

    async def read(self, request: Request) -> Response:
        """Download a stored resource.

        ---

        description: Returns resource bytes.
        parameters:
          - in: path
            name: id
        responses:
            200:
                description: Resource content, as an attachment.
            404:
                description: Not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._read(request, thumbnail=False)

    async def read_thumbnail(self, request: Request) -> Response:
        """Download a stored thumbnail.

        ---

        description: Returns resource thumbnail bytes.
        parameters:
          - in: path
            name: id
        responses:
            200:
                description: Thumbnail content, as an attachment.
            404:
                description: Not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._read(request, thumbnail=True)

    async def _upload(self, request: Request, thumbnail: bool) -> Response:
        data = self.validate(UploadChunkSchema, await request.body())
        part = await self.svc.append(
            request.path_params['id'],
            upload_id=data['uploadId'],
            part_number=data['part'],
            data=data['buffer'],
            thumbnail=thumbnail,
        )
        return json_response(self.dumps(part.dump()), status_code=201)

    async def upload(self, request: Request) -> Response:
        """Upload one chunk of a resource.

        ---

        description: Upload a part, checked against the remaining budget of the session.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: UploadChunkSchema
        responses:
            201:
                description: Part number and etag, to send back on completion.
                content:
                    application/json:
                        schema: PartSchema
            400:
                description: Wrong body.
                content:
                    application/json:
                        schema: ErrorSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
            413:
                description: Chunk exceeds remaining budget, or session is not open.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._upload(request, thumbnail=False)

    async def upload_thumbnail(self, request: Request) -> Response:
        """Upload one chunk of a thumbnail.

        ---

        description: Upload a thumbnail part, checked against the fixed thumbnail budget.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: UploadChunkSchema
        responses:
            201:
                description: Part number and etag, to send back on completion.
                content:
                    application/json:
                        schema: PartSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
            413:
                description: Chunk exceeds remaining budget, or session is not open.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._upload(request, thumbnail=True)

    async def _complete(self, request: Request, thumbnail: bool) -> Response:
        data = self.validate(CompleteResourceSchema, await request.body())
        key = await self.svc.complete(
            request.path_params['id'],
            upload_id=data['uploadId'],
            parts=data['parts'],
            thumbnail=thumbnail,
        )
        return json_response(self.dumps({'id': key}), status_code=201)

    @login_required
    async def complete(self, request: Request) -> Response:
        """Client has to gather etags for each parts while uploading and sumbit them on this route
        in order to complete a multipart upload.

        ---

        description: Multipart upload completion.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: CompleteResourceSchema
        responses:
            201:
                description: Completed resource id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            400:
                description: Wrongly formatted completion notice.
                content:
                    application/json:
                        schema: ErrorSchema
            401:
                description: Missing or invalid bearer token.
                content:
                    application/json:
                        schema: ErrorSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._complete(request, thumbnail=False)

    @login_required
    async def complete_thumbnail(self, request: Request) -> Response:
        """Thumbnail multipart upload completion.

        ---

        description: Thumbnail multipart upload completion.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: CompleteResourceSchema
        responses:
            201:
                description: Completed thumbnail id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            401:
                description: Missing or invalid bearer token.
                content:
                    application/json:
                        schema: ErrorSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._complete(request, thumbnail=True)

    async def _delete(self, request: Request, thumbnail: bool) -> Response:
        key = await self.svc.delete(request.path_params['id'], thumbnail=thumbnail)
        return json_response(self.dumps({'id': key}), status_code=200)

    @login_required
    async def delete(self, request: Request) -> Response:
        """Delete a stored resource.

        ---

        description: Delete resource.
        parameters:
          - in: path
            name: id
        responses:
            200:
                description: Deleted resource id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            401:
                description: Missing or invalid bearer token.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._delete(request, thumbnail=False)

    @login_required
    async def delete_thumbnail(self, request: Request) -> Response:
        """Delete a stored thumbnail.

        ---

        description: Delete resource thumbnail.
        parameters:
          - in: path
            name: id
        responses:
            200:
                description: Deleted thumbnail id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            401:
                description: Missing or invalid bearer token.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._delete(request, thumbnail=True)

    async def _abort(self, request: Request, thumbnail: bool) -> Response:
        data = self.validate(AbortResourceSchema, await request.body())
        key = await self.svc.abort(
            request.path_params['id'], upload_id=data['uploadId'], thumbnail=thumbnail
        )
        return json_response(self.dumps({'id': key}), status_code=200)

    async def abort(self, request: Request) -> Response:
        """Abort a resource upload.

        ---

        description: Discard uploaded parts and close the session.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: AbortResourceSchema
        responses:
            200:
                description: Aborted resource id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._abort(request, thumbnail=False)

    async def abort_thumbnail(self, request: Request) -> Response:
        """Abort a thumbnail upload.

        ---

        description: Discard uploaded thumbnail parts and close the session.
        parameters:
          - in: path
            name: id
        requestBody:
            required: true
            content:
                application/json:
                    schema: AbortResourceSchema
        responses:
            200:
                description: Aborted thumbnail id.
                content:
                    application/json:
                        schema: ResourceIdSchema
            404:
                description: Upload not found.
                content:
                    application/json:
                        schema: ErrorSchema
        """
        return await self._abort(request, thumbnail=True)
