from marshmallow import Schema, ValidationError, post_load, validates
from marshmallow.fields import String, Integer, List, Nested
from marshmallow.validate import Length, OneOf, Range, Regexp

from chunkstore.components.services import THUMBNAIL_SUFFIX
from chunkstore.managers import UploadedPart
from chunkstore.utils.utils import decode_chunk


MAX_PART_NUMBER = 10000
RESERVED_IDS = ('live', 'schema')


class CreateResourceSchema(Schema):
    contentType = String(required=True, validate=Length(min=1))
    size = Integer(required=True, strict=True, validate=Range(min=1))
    id = String(validate=Regexp(r'^[A-Za-z0-9_.-]{1,128}$'))

    @validates('id')
    def validate_id(self, value, **_):
        if value.endswith(THUMBNAIL_SUFFIX):
            raise ValidationError(f"Resource id may not end with '{THUMBNAIL_SUFFIX}'.")
        if value in RESERVED_IDS:
            raise ValidationError(f"Resource id '{value}' is reserved.")


class UploadChunkSchema(Schema):
    buffer = String(required=True)
    part = Integer(required=True, strict=True, validate=Range(min=1, max=MAX_PART_NUMBER))
    uploadId = String(required=True, validate=Length(min=1))
    encoding = String(load_default="binary", validate=OneOf(("binary", "base64")))

    @post_load
    def decode_buffer(self, data, **_):
        try:
            data['buffer'] = decode_chunk(data['buffer'], data['encoding'])
        except ValueError as e:
            raise ValidationError(str(e), field_name='buffer')
        return data


class PartSchema(Schema):
    partNumber = Integer(required=True, strict=True, validate=Range(min=1, max=MAX_PART_NUMBER))
    etag = String(required=True, validate=Length(min=1))

    @post_load
    def make_part(self, data, **_):
        return UploadedPart(part_number=data['partNumber'], etag=data['etag'])


class CompleteResourceSchema(Schema):
    parts = List(Nested(PartSchema), required=True)
    uploadId = String(required=True, validate=Length(min=1))


class AbortResourceSchema(Schema):
    uploadId = String(required=True, validate=Length(min=1))


class ResourceIdSchema(Schema):
    id = String(required=True)


class CreatedResourceSchema(ResourceIdSchema):
    uploadId = String(required=True)
    thumbnailUploadId = String(required=True)
