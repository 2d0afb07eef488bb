"""Utils."""
import json
from base64 import b64decode
from binascii import Error as B64Error
from typing import Any, Dict, List, Tuple, TypeVar

from starlette.responses import Response


_T = TypeVar("_T")


def json_response(data: Any, status_code: int) -> Response:
    """Formats a Response object and set application/json header."""
    return Response(
        str(data) + "\n",
        status_code=status_code,
        media_type="application/json"
    )


def json_bytes(d: Dict[Any, Any]) -> bytes:
    """Encodes python Dict as utf-8 bytes."""
    return json.dumps(d).encode('utf-8')


def decode_chunk(buffer: str, encoding: str = "binary") -> bytes:
    """Turn a transported chunk into raw bytes.

    - binary: one character per byte, code points are truncated to their low byte.
    - base64: standard alphabet, padding required.

    :raises ValueError: buffer does not match encoding
    """
    match encoding:
        case "binary":
            try:
                return buffer.encode('latin-1')
            except UnicodeEncodeError:
                return bytes(ord(c) & 0xFF for c in buffer)
        case "base64":
            try:
                return b64decode(buffer, validate=True)
            except B64Error as e:
                raise ValueError(f"Invalid base64 payload: {e}") from e
        case _:
            raise ValueError(f"Unknown encoding: {encoding}")


def attachment_filename(key: str, content_type: str) -> str:
    """Filename advertised on download: key, plus content type subtype as extension."""
    parts = content_type.split(";")[0].strip().split("/")
    ext = parts[1] if len(parts) > 1 and parts[1] else 'jpg'
    return f"{key}.{ext}"


# Collections
def to_it(x: _T | Tuple[_T, ...] | List[_T]) -> Tuple[_T, ...] | List[_T]:
    """Return identity list/tuple or pack atomic value in an iterable tuple."""
    return x if isinstance(x, (tuple, list)) else (x,)
