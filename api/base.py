"""Response constructors shared by every handler."""

import json as _json
from typing import Any

from pydantic import BaseModel
from starlette.responses import Response

from api import errors

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
CSS_CONTENT_TYPE = "text/css; charset=utf-8"


def empty() -> Response:
    """Empty 204 response."""
    return Response(status_code=204)


def not_modified() -> Response:
    """Empty 304, for answering conditional requests."""
    return Response(status_code=304)


def html(data: str) -> Response:
    return Response(content=data, headers={"Content-Type": HTML_CONTENT_TYPE})


def css(data: str) -> Response:
    return Response(content=data, headers={"Content-Type": CSS_CONTENT_TYPE})


def json(data: Any) -> Response:
    """Serialize data (a pydantic model or plain JSON-able value) as the body."""
    if isinstance(data, BaseModel):
        body = data.model_dump_json()
    else:
        body = _json.dumps(data, separators=(",", ":"))
    return Response(content=body, headers={"Content-Type": errors.JSON_CONTENT_TYPE})


def set_status(response: Response, status_code: int) -> Response:
    response.status_code = status_code
    return response


def add_header(response: Response, name: str, value: str) -> Response:
    """Set a header, rejecting values that cannot go on the wire.

    Raises:
        InternalError: If the value has control characters or is not latin-1.
    """
    if any(ch in value for ch in "\r\n\0"):
        raise errors.invalid_header(f"Control character in value for {name}")
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise errors.invalid_header(e) from e
    response.headers[name] = value
    return response
