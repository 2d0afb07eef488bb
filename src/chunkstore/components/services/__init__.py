from .uploadservice import UploadService
from .resourceservice import ResourceService, thumbnail_id, MAX_THUMBNAIL_SIZE, THUMBNAIL_SUFFIX
