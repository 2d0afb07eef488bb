from starlette.config import Config
from starlette.datastructures import Secret, CommaSeparatedStrings

try:
    config = Config('.env')
except FileNotFoundError:
    config = Config()

# Server.
API_NAME        = config("API_NAME",        cast=str,  default="chunkstore")
API_VERSION     = config("API_VERSION",     cast=str,  default="0.1.0")
API_DESCRIPTION = config("API_DESCRIPTION", cast=str,  default="Chunked resource uploads.")

SERVER_HOST     = config("SERVER_HOST",     cast=str,  default="0.0.0.0")
SERVER_PORT     = config("SERVER_PORT",     cast=int,  default=8000)
SERVER_TIMEOUT  = config("SERVER_TIMEOUT",  cast=int,  default=30)

# Responses.
INDENT          = config('INDENT',          cast=int,  default=2)
CACHE_MAX_AGE   = config('CACHE_MAX_AGE',   cast=int,  default=600)
CORS_ORIGINS    = config('CORS_ORIGINS',    cast=CommaSeparatedStrings, default="*")

# Security.
SECRET_KEY      = config("SECRET_KEY",      cast=Secret, default=None)

# S3 Bucket.
S3_ENDPOINT_URL        = config('S3_ENDPOINT_URL',        cast=str,     default=None)
S3_BUCKET_NAME         = config('S3_BUCKET_NAME',         cast=str,     default=None)
S3_ACCESS_KEY_ID       = config('S3_ACCESS_KEY_ID',       cast=Secret,  default=None)
S3_SECRET_ACCESS_KEY   = config('S3_SECRET_ACCESS_KEY',   cast=Secret,  default=None)
S3_REGION_NAME         = config('S3_REGION_NAME',         cast=str,     default="us-east-1")

# Ledger.
REDIS_URL              = config('REDIS_URL',              cast=str,     default=None)
LEDGER_PREFIX          = config('LEDGER_PREFIX',          cast=str,     default="chunkstore:")
LEDGER_TOMBSTONE_TTL   = config('LEDGER_TOMBSTONE_TTL',   cast=int,     default=3600)

# Uploads.
UPLOAD_TTL             = config('UPLOAD_TTL',             cast=int,     default=3600)
UPLOAD_SIZE_LIMIT      = config('UPLOAD_SIZE_LIMIT',      cast=int,     default=0)
