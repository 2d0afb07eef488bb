class RequestError(RuntimeError):
    detail: str
    def __init__(self, detail: str)  -> None:
        super().__init__(detail)
        self.detail = detail


class ManagerError(RuntimeError):
    """Raised when an external service fails in a way the core does not interpret."""


## Payload
class PayloadJSONDecodingError(RequestError):
    """Raised when payload data failed to be parsed in JSON format."""


class DataError(RequestError):
    """Raised when input data is incorrect."""


class PartsMismatchError(RequestError):
    """Raised when a completion notice references parts the store does not hold."""


## Auth
class UnauthorizedError(RequestError):
    """Raised when a privileged route is reached without a valid bearer token."""


## Not found
class NotFoundError(RequestError):
    """Base class for missing objects, sessions and paths."""


class ObjectNotFoundError(NotFoundError):
    """Requested object has not been stored."""


class UploadNotFoundError(NotFoundError):
    """Multipart upload cannot be resumed: unknown, completed or aborted."""


class PathNotFoundError(NotFoundError):
    """No route matches the request."""


## Quota
class RequestEntityTooLargeError(RequestError):
    """Base class for budget violations."""


class SessionNotOpenError(RequestEntityTooLargeError):
    """Raised when a chunk targets a session with no open ledger entry."""


class ChunkTooLargeError(RequestEntityTooLargeError):
    """Raised when a chunk would overrun the remaining budget."""


class FileTooLargeError(RequestEntityTooLargeError):
    """Raised when trying to create a too large resource."""
