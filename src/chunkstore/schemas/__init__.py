from .error import ErrorSchema
from .resource import (
    CreateResourceSchema,
    UploadChunkSchema,
    PartSchema,
    CompleteResourceSchema,
    AbortResourceSchema,
    ResourceIdSchema,
    CreatedResourceSchema,
)
