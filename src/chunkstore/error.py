import json
from http import HTTPStatus

from starlette.exceptions import HTTPException
from starlette.requests import Request

from chunkstore import config
from chunkstore.utils.utils import json_response
from .exceptions import (
    RequestError,
    DataError,
    PayloadJSONDecodingError,
    PartsMismatchError,
    UnauthorizedError,
    NotFoundError,
    PathNotFoundError,
    RequestEntityTooLargeError,
)


class Error:
    """Error printing class."""
    def __init__(self, status, detail=None) -> None:
        self.status = status
        self.detail = detail
        self.reason = HTTPStatus(self.status).phrase

    @property
    def __dict__(self):
        return {"code": self.status, "reason": self.reason, "message": self.detail}

    @property
    def response(self):
        return json_response(
            data=json.dumps(self.__dict__, indent=config.INDENT),
            status_code=self.status
        )


async def onerror(request: Request, exc: Exception):
    """Error event handler.

    Relevant documentation: https://restfulapi.net/http-status-codes/"""
    detail = None

    if issubclass(exc.__class__, RequestError):
        detail = exc.detail

        match exc:
            case DataError() | PayloadJSONDecodingError() | PartsMismatchError():
                status = 400
            case UnauthorizedError():
                status = 401
            case NotFoundError():
                status = 404
            case RequestEntityTooLargeError():
                status = 413
            case _:
                status = 400
    else:
        request.app.logger.error("Unhandled %s: %s", exc.__class__.__name__, exc)
        status = 500
        detail = "Server Error. Contact an administrator about it."

    return Error(status, detail).response


async def onhttperror(request: Request, exc: HTTPException):
    """Routing errors raised by starlette.

    Unmatched path/method pairs are reported as missing paths."""
    if exc.status_code in (404, 405):
        return await onerror(request, PathNotFoundError(f"Path {request.url.path} not found."))
    return Error(exc.status_code, exc.detail).response
