"""Interact with external services."""
from .storage import ObjectStoreManager, MultipartUpload, UploadedPart, StoredObject
from .memorymanager import MemoryStoreManager
from .s3manager import S3Manager
from .ledger import LedgerManager, LedgerStatus, MemoryLedgerManager, SessionState
from .redismanager import RedisLedgerManager
