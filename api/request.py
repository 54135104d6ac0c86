"""Request deconstructors with strict validation.

Every failure surfaces as an api.errors.Error, never as a raw parser
exception.
"""

import json
from typing import Any, TypeVar
from urllib.parse import parse_qsl

from pydantic import BaseModel, ValidationError
from starlette.requests import ClientDisconnect, Request

from api import errors

JSON_CONTENT_TYPE = errors.JSON_CONTENT_TYPE

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_header(request: Request, header_name: str) -> str | None:
    """Get a header as text, or None if absent.

    Only visible ASCII (plus tab) is accepted as text.

    Raises:
        UnreadableHeader: If the value contains other bytes.
    """
    key = header_name.lower().encode("latin-1")
    for raw_name, raw_value in request.headers.raw:
        if raw_name != key:
            continue
        try:
            value = raw_value.decode("ascii")
        except UnicodeDecodeError as e:
            raise errors.unreadable_header(e, header_name) from e
        if any(not (ch == "\t" or " " <= ch <= "~") for ch in value):
            raise errors.unreadable_header(
                ValueError("failed to convert header to a str"), header_name
            )
        return value
    return None


def _parse_unsigned(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"invalid digit found in string {value!r}")
    return int(value)


def validate_content_length(request: Request, max_len: int) -> int:
    """Validate Content-Length and return it.

    Call before get_body or anything else consuming the body.
    """
    header = get_header(request, "Content-Length")
    if header is None:
        raise errors.content_length_missing()
    try:
        length = _parse_unsigned(header)
    except ValueError as e:
        raise errors.content_length_not_int(e) from e
    if length > max_len:
        raise errors.content_length_too_large(length, max_len)
    return length


async def get_body(request: Request, max_len: int) -> bytes:
    """Buffer the whole body into one contiguous bytes object.

    Stops as soon as more bytes than Content-Length arrive. Deserializers
    work better on one buffer than on a chunk stream, hence no streaming.
    """
    expected_len = validate_content_length(request, max_len)
    body = bytearray()

    try:
        async for chunk in request.stream():
            if len(body) + len(chunk) > expected_len:
                raise errors.content_length_mismatch(len(body) + len(chunk), expected_len)
            body.extend(chunk)
    except ClientDisconnect as e:
        raise errors.connection_fault(e) from e

    if len(body) < expected_len:
        raise errors.content_length_mismatch(len(body), expected_len)
    return bytes(body)


async def parse_json(
    request: Request,
    max_len: int,
    model: type[ModelT] | None = None,
) -> ModelT | Any:
    """Parse the body as JSON, optionally validated into a pydantic model."""
    content_type = get_header(request, "Content-Type") or ""
    if content_type != JSON_CONTENT_TYPE:
        raise errors.invalid_content_type(content_type, JSON_CONTENT_TYPE)

    data = await get_body(request, max_len)

    try:
        if model is not None:
            return model.model_validate_json(data)
        return json.loads(data)
    except (ValidationError, ValueError) as e:
        raise errors.invalid_json(e) from e


def parse_query(request: Request, model: type[ModelT] | None = None) -> ModelT | dict:
    """Decode the URL query string, optionally into a pydantic model.

    Raises:
        InvalidUrlEncoding: On bad percent-encoding, repeated keys or a
            query that does not fit the model.
    """
    query = request.url.query
    try:
        pairs = parse_qsl(query, keep_blank_values=True, errors="strict")
    except (UnicodeDecodeError, ValueError) as e:
        raise errors.invalid_url_encoding(e) from e

    data: dict[str, str] = {}
    for key, value in pairs:
        if key in data:
            raise errors.invalid_url_encoding(ValueError(f"duplicate field `{key}`"))
        data[key] = value

    if model is None:
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise errors.invalid_url_encoding(e) from e


def parse_cookie_header(cookie_header: str | None) -> dict[str, str]:
    """Parse a Cookie header into name -> value.

    The same cookie sent twice with one value is tolerated. Two different
    values under one name are rejected, as is any pair without a name.
    """
    cookies: dict[str, str] = {}
    if not cookie_header:
        return cookies

    for part in cookie_header.split(";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        name = name.strip()
        if not sep or not name:
            raise errors.unparseable_cookie(cookie_header)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]

        old_value = cookies.get(name)
        if old_value is not None and old_value != value:
            raise errors.duplicate_cookies(name, value, old_value)
        cookies[name] = value

    return cookies


def parse_cookies(request: Request) -> dict[str, str]:
    return parse_cookie_header(get_header(request, "Cookie"))
