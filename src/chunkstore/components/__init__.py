# Explicit re-export for mypy strict.
from .services import ResourceService as ResourceService
from .services import UploadService as UploadService
