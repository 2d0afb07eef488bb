"""Security convenience functions."""
from functools import wraps
from hmac import compare_digest

from starlette.requests import HTTPConnection

from chunkstore.exceptions import UnauthorizedError


def auth_header(conn: HTTPConnection) -> str | None:
    """Check and return token from headers if present else returns None."""
    header = conn.headers.get("Authorization")
    if not header or "Bearer " not in header:
        return None
    return header.split("Bearer ")[-1].strip() or None


def check_bearer(conn: HTTPConnection, secret: str | None) -> None:
    """Compare bearer token against shared secret.

    :raises UnauthorizedError: token or secret missing, or mismatch
    """
    token = auth_header(conn)
    if not token or not secret:
        raise UnauthorizedError("Missing bearer token header")
    if not compare_digest(token.encode('utf-8'), secret.encode('utf-8')):
        raise UnauthorizedError("Invalid bearer token header")


def login_required(f):
    """Docorator for endpoints requiring a valid header 'Authorization: Bearer <secret>'"""
    @wraps(f)
    async def lr_wrapper(controller, request, *args, **kwargs):
        check_bearer(request, controller.app.secret_key)
        return await f(controller, request, *args, **kwargs)

    lr_wrapper.login_required = True
    return lr_wrapper
